import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from watchlog.core.auth import get_current_user
from watchlog.core.config import get_settings
from watchlog.core.dependencies import get_membership_provider, get_movie_catalog
from watchlog.core.exceptions import BaseAppException
from watchlog.core.interfaces import MembershipProviderInterface, MovieCatalogInterface
from watchlog.db import get_db
from watchlog.schemas.watch import (
    BulkUpdateRequest, BulkUpdateResponse, PaginatedGroupedWatchesResponse,
    WatchCreate, WatchResponse, WatchUpdate,
)
from watchlog.services.bulk_visibility import BulkVisibilityMutator
from watchlog.services.watch_service import GroupedWatchesQuery, WatchService

router = APIRouter(prefix="/watches", tags=["watches"])
logger = logging.getLogger(__name__)


def handle_exception(e: Exception) -> HTTPException:
    """Convert domain exceptions to HTTP responses."""
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, BaseAppException):
        return HTTPException(
            status_code=e.status_code,
            detail=e.message,
            headers={"X-Error-Code": e.error_code},
        )
    logger.exception("Unhandled error in watches router")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An internal server error occurred",
    )


def get_watch_service(
    db: Session = Depends(get_db),
    catalog: MovieCatalogInterface = Depends(get_movie_catalog),
    memberships: MembershipProviderInterface = Depends(get_membership_provider),
) -> WatchService:
    return WatchService(db, catalog=catalog, memberships=memberships)


@router.get("", response_model=List[WatchResponse])
def list_watches(
    group_id: Optional[int] = Query(None, alias="groupId"),
    service: WatchService = Depends(get_watch_service),
    current_user_id: int = Depends(get_current_user),
):
    """All of the caller's watches, newest first."""
    try:
        return service.list_watches(current_user_id, group_id)
    except Exception as e:
        raise handle_exception(e)


@router.get("/grouped", response_model=PaginatedGroupedWatchesResponse)
def get_grouped_watches(
    page: int = Query(1, description="1-based page of movie groups"),
    page_size: Optional[int] = Query(None, alias="pageSize"),
    search: Optional[str] = Query(None, description="Matches movie titles"),
    rating_min: Optional[float] = Query(None, alias="ratingMin"),
    rating_max: Optional[float] = Query(None, alias="ratingMax"),
    watched_from: Optional[date] = Query(None, alias="watchedFrom"),
    watched_to: Optional[date] = Query(None, alias="watchedTo"),
    rewatch_only: bool = Query(False, alias="rewatchOnly"),
    unrated_only: bool = Query(False, alias="unratedOnly"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    group_id: Optional[int] = Query(None, alias="groupId"),
    service: WatchService = Depends(get_watch_service),
    current_user_id: int = Depends(get_current_user),
):
    try:
        query = GroupedWatchesQuery(
            page=page,
            page_size=page_size if page_size is not None else get_settings().DEFAULT_PAGE_SIZE,
            search=search,
            rating_min=rating_min,
            rating_max=rating_max,
            watched_from=watched_from,
            watched_to=watched_to,
            rewatch_only=rewatch_only,
            unrated_only=unrated_only,
            sort_by=sort_by,
            group_id=group_id,
        )
        page = service.get_grouped_watches(current_user_id, query)
        return PaginatedGroupedWatchesResponse.model_validate(page)
    except Exception as e:
        raise handle_exception(e)


@router.get("/by-movie/{movie_id}", response_model=List[WatchResponse])
def get_watches_by_movie(
    movie_id: int,
    service: WatchService = Depends(get_watch_service),
    current_user_id: int = Depends(get_current_user),
):
    """The caller's watch history for one movie; empty when never watched."""
    try:
        return service.list_watches_for_movie(current_user_id, movie_id)
    except Exception as e:
        raise handle_exception(e)


@router.post("/bulk", response_model=BulkUpdateResponse)
def bulk_update_visibility(
    request: BulkUpdateRequest,
    db: Session = Depends(get_db),
    memberships: MembershipProviderInterface = Depends(get_membership_provider),
    current_user_id: int = Depends(get_current_user),
):
    """Apply one visibility change to many watches.

    A 200 can still carry failures: check ``success`` and ``errors``.
    """
    try:
        mutator = BulkVisibilityMutator(db, memberships)
        result = mutator.apply(
            owner_id=current_user_id,
            watch_ids=request.watch_ids,
            is_private=request.is_private,
            candidate_group_ids=request.group_ids,
            group_operation=request.group_operation,
        )
        return BulkUpdateResponse.model_validate(result)
    except Exception as e:
        raise handle_exception(e)


@router.get("/{watch_id}", response_model=WatchResponse)
def get_watch(
    watch_id: int,
    service: WatchService = Depends(get_watch_service),
    current_user_id: int = Depends(get_current_user),
):
    try:
        return service.get_watch(watch_id, current_user_id)
    except Exception as e:
        raise handle_exception(e)


@router.post("", response_model=WatchResponse, status_code=status.HTTP_201_CREATED)
def create_watch(
    watch_data: WatchCreate,
    service: WatchService = Depends(get_watch_service),
    current_user_id: int = Depends(get_current_user),
):
    try:
        return service.create_watch(current_user_id, watch_data)
    except Exception as e:
        raise handle_exception(e)


@router.put("/{watch_id}", response_model=WatchResponse)
def update_watch(
    watch_id: int,
    watch_data: WatchUpdate,
    service: WatchService = Depends(get_watch_service),
    current_user_id: int = Depends(get_current_user),
):
    try:
        return service.update_watch(current_user_id, watch_id, watch_data)
    except Exception as e:
        raise handle_exception(e)


@router.delete("/{watch_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_watch(
    watch_id: int,
    service: WatchService = Depends(get_watch_service),
    current_user_id: int = Depends(get_current_user),
):
    try:
        service.delete_watch(current_user_id, watch_id)
    except Exception as e:
        raise handle_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
