import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from watchlog.core.auth import get_current_user
from watchlog.core.config import get_settings
from watchlog.core.dependencies import get_membership_provider, get_tmdb_movie_service
from watchlog.core.exceptions import BaseAppException
from watchlog.core.interfaces import MembershipProviderInterface, MovieServiceInterface
from watchlog.db import get_db
from watchlog.schemas.group import GroupFeedResponse, GroupFeedStatsResponse, GroupMembershipResponse
from watchlog.schemas.stats import GroupRecommendationStatsResponse, RecommendedMovieResponse
from watchlog.services.group_feed_service import GroupFeedQuery
from watchlog.services.group_recommendations_service import GroupRecommendationsService
from watchlog.services.membership_service import MembershipService

router = APIRouter(tags=["groups"])
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
    logger.exception("Unhandled error in groups router")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An internal server error occurred",
    )


def get_feed_query(
    db: Session = Depends(get_db),
    memberships: MembershipProviderInterface = Depends(get_membership_provider),
) -> GroupFeedQuery:
    return GroupFeedQuery(db, memberships)


def get_recommendations_service(
    db: Session = Depends(get_db),
    memberships: MembershipProviderInterface = Depends(get_membership_provider),
    tmdb: MovieServiceInterface = Depends(get_tmdb_movie_service),
) -> GroupRecommendationsService:
    return GroupRecommendationsService(db, memberships, tmdb)


def _take(take: Optional[int]) -> int:
    return take if take is not None else get_settings().DEFAULT_FEED_TAKE


@router.get("/groups", response_model=List[GroupMembershipResponse])
def get_my_groups(
    db: Session = Depends(get_db),
    current_user_id: int = Depends(get_current_user),
):
    """Groups the caller belongs to, with the caller's role in each."""
    try:
        service = MembershipService(db)
        roles = service.list_memberships_with_role(current_user_id)
        return [
            GroupMembershipResponse(
                id=group.id,
                name=group.name,
                description=group.description,
                role=roles[group.id],
                created_by_id=group.created_by_id,
                created_at=group.created_at,
            )
            for group in service.list_groups(current_user_id)
        ]
    except Exception as e:
        raise handle_exception(e)


@router.get("/groups/{group_id}/feed", response_model=GroupFeedResponse)
def get_group_feed(
    group_id: int,
    skip: int = Query(0),
    take: Optional[int] = Query(None),
    feed: GroupFeedQuery = Depends(get_feed_query),
    current_user_id: int = Depends(get_current_user),
):
    """Watches shared with a group, newest first. Non-members get an empty feed."""
    try:
        logger.info(f"User {current_user_id} getting feed for group {group_id} (skip: {skip}, take: {take})")
        page = feed.feed(group_id, current_user_id, skip, _take(take))
        return GroupFeedResponse.model_validate(page)
    except Exception as e:
        raise handle_exception(e)


@router.get("/groups/{group_id}/feed/stats", response_model=GroupFeedStatsResponse)
def get_group_feed_stats(
    group_id: int,
    skip: int = Query(0),
    take: Optional[int] = Query(None),
    feed: GroupFeedQuery = Depends(get_feed_query),
    current_user_id: int = Depends(get_current_user),
):
    try:
        stats = feed.feed_stats(group_id, current_user_id, skip, _take(take))
        return GroupFeedStatsResponse.model_validate(stats)
    except Exception as e:
        raise handle_exception(e)


@router.get("/feed", response_model=GroupFeedResponse)
def get_combined_feed(
    skip: int = Query(0),
    take: Optional[int] = Query(None),
    feed: GroupFeedQuery = Depends(get_feed_query),
    current_user_id: int = Depends(get_current_user),
):
    """Everything shared with any of the caller's groups."""
    try:
        page = feed.combined_feed(current_user_id, skip, _take(take))
        return GroupFeedResponse.model_validate(page)
    except Exception as e:
        raise handle_exception(e)


@router.get("/groups/{group_id}/recommendations", response_model=List[RecommendedMovieResponse])
def get_group_recommendations(
    group_id: int,
    count: int = Query(10),
    service: GroupRecommendationsService = Depends(get_recommendations_service),
    current_user_id: int = Depends(get_current_user),
):
    """Popular movies no member of the group has watched yet."""
    try:
        logger.info(f"User {current_user_id} getting recommendations for group {group_id}")
        movies = service.get_recommendations(group_id, current_user_id, count)
        return [RecommendedMovieResponse.model_validate(movie) for movie in movies]
    except Exception as e:
        raise handle_exception(e)


@router.get("/groups/{group_id}/recommendations/stats", response_model=GroupRecommendationStatsResponse)
def get_group_recommendation_stats(
    group_id: int,
    service: GroupRecommendationsService = Depends(get_recommendations_service),
    current_user_id: int = Depends(get_current_user),
):
    try:
        stats = service.get_recommendation_stats(group_id, current_user_id)
        return GroupRecommendationStatsResponse.model_validate(stats)
    except Exception as e:
        raise handle_exception(e)
