from typing import Optional, List
from datetime import datetime
from watchlog.models.group import GroupRole
from .base import CamelModel
from .movie import MovieBasicInfo


class GroupMembershipResponse(CamelModel):
    """One of the caller's groups and the caller's role in it"""
    id: int
    name: str
    description: Optional[str] = None
    role: GroupRole
    created_by_id: int
    created_at: Optional[datetime] = None


class GroupFeedItemResponse(CamelModel):
    id: int
    user_id: int
    username: str
    owner_is_deactivated: bool = False
    movie_id: int
    movie: MovieBasicInfo
    watched_date: datetime
    rating: Optional[int] = None
    notes: Optional[str] = None
    watch_location: Optional[str] = None
    watched_with: Optional[str] = None
    is_rewatch: bool


class GroupFeedResponse(CamelModel):
    items: List[GroupFeedItemResponse]
    skip: int
    take: int
    has_more: bool


class MovieWatchStatsResponse(CamelModel):
    movie_id: int
    movie: MovieBasicInfo
    watch_count: int
    average_rating: Optional[float] = None
    watched_by_usernames: List[str] = []


class GroupFeedStatsResponse(CamelModel):
    group_id: int
    group_name: str
    total_watches: int
    unique_movies: int
    active_members: int
    average_group_rating: Optional[float] = None
    watches: List[GroupFeedItemResponse] = []
    top_movies: List[MovieWatchStatsResponse] = []
