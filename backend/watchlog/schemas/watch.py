from pydantic import Field
from typing import Optional, List
from datetime import datetime
from .base import CamelModel
from .movie import MovieBasicInfo


class UserBasicInfo(CamelModel):
    id: int
    username: str


class WatchCreate(CamelModel):
    tmdb_id: int = Field(..., gt=0, description="TMDB movie ID")
    watched_date: datetime
    rating: Optional[int] = Field(default=None, ge=1, le=10)
    notes: Optional[str] = None
    watch_location: Optional[str] = Field(default=None, max_length=100)
    watched_with: Optional[str] = Field(default=None, max_length=500)
    is_rewatch: bool = False
    # None means: shared when groups are given, private otherwise
    is_private: Optional[bool] = None
    group_ids: List[int] = []
    share_with_all_groups: bool = False


class WatchUpdate(CamelModel):
    watched_date: Optional[datetime] = None
    rating: Optional[int] = Field(default=None, ge=1, le=10)
    notes: Optional[str] = None
    watch_location: Optional[str] = Field(default=None, max_length=100)
    watched_with: Optional[str] = Field(default=None, max_length=500)
    is_rewatch: Optional[bool] = None
    # Sharing is replaced only when is_private is sent
    is_private: Optional[bool] = None
    group_ids: List[int] = []
    share_with_all_groups: bool = False


class WatchResponse(CamelModel):
    id: int
    user_id: int
    movie_id: int
    watched_date: datetime
    rating: Optional[int] = None
    notes: Optional[str] = None
    watch_location: Optional[str] = None
    watched_with: Optional[str] = None
    is_rewatch: bool
    is_private: bool
    group_ids: List[int] = []
    created_at: Optional[datetime] = None
    movie: MovieBasicInfo
    user: Optional[UserBasicInfo] = None


class GroupedWatchResponse(CamelModel):
    movie_id: int
    movie: MovieBasicInfo
    watch_count: int
    average_rating: Optional[float] = None
    latest_rating: Optional[int] = None
    watches: List[WatchResponse]


class PaginatedGroupedWatchesResponse(CamelModel):
    items: List[GroupedWatchResponse]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    has_more: bool


class BulkUpdateRequest(CamelModel):
    watch_ids: List[int] = []
    is_private: bool = False
    group_ids: List[int] = []
    group_operation: Optional[str] = None


class BulkUpdateResponse(CamelModel):
    success: bool
    updated: int
    failed: int
    errors: List[str]
