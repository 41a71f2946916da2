from .base import CamelModel
from .movie import MovieBasicInfo
from .watch import (
    UserBasicInfo, WatchCreate, WatchUpdate, WatchResponse, GroupedWatchResponse,
    PaginatedGroupedWatchesResponse, BulkUpdateRequest, BulkUpdateResponse,
)
from .group import (
    GroupMembershipResponse, GroupFeedItemResponse, GroupFeedResponse,
    MovieWatchStatsResponse, GroupFeedStatsResponse,
)
from .stats import (
    UserStatsResponse, RecommendedMovieResponse, GroupRecommendationStatsResponse,
)
