import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from watchlog.core.auth import get_current_user
from watchlog.core.exceptions import BaseAppException
from watchlog.db import get_db
from watchlog.schemas.stats import UserStatsResponse
from watchlog.services.stats_service import StatsService

router = APIRouter(prefix="/stats", tags=["stats"])
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
    logger.exception("Unhandled error in stats router")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An internal server error occurred",
    )


@router.get("", response_model=UserStatsResponse)
def get_my_stats(
    db: Session = Depends(get_db),
    current_user_id: int = Depends(get_current_user),
):
    """Viewing statistics over all of the caller's watches."""
    try:
        logger.info(f"Getting stats for user {current_user_id}")
        return UserStatsResponse.model_validate(StatsService(db).get_user_stats(current_user_id))
    except Exception as e:
        raise handle_exception(e)
