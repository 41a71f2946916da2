import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from watchlog.core.exceptions import CatalogUnavailableException, ValidationException
from watchlog.core.interfaces import MembershipProviderInterface, MovieServiceInterface, TMDBError
from watchlog.core.tmdb_service import TMDBServiceFactory
from watchlog.models.watch import Watch
from watchlog.repositories.group_repository import GroupRepository
from watchlog.repositories.watch_repository import WatchRepository

logger = logging.getLogger(__name__)

DEFAULT_RECOMMENDATION_COUNT = 10
PREFERRED_GENRES_LIMIT = 3


@dataclass
class GroupRecommendationStats:
    group_id: int
    group_name: str = ""
    total_movies_watched: int = 0
    average_group_rating: Optional[float] = None
    top_genres: Dict[str, int] = field(default_factory=dict)
    preferred_genres: List[str] = field(default_factory=list)
    recommendations: List[Dict[str, Any]] = field(default_factory=list)


class GroupRecommendationsService:
    """Popular TMDB movies that nobody in a group has logged yet.

    Only members may ask; anyone else gets an empty result, the same way the
    group feed answers non-members.
    """

    def __init__(
        self,
        db: Session,
        memberships: MembershipProviderInterface,
        tmdb: Optional[MovieServiceInterface] = None,
    ):
        self.db = db
        self.memberships = memberships
        self.group_repository = GroupRepository(db)
        self.watch_repository = WatchRepository(db)
        self._tmdb = tmdb

    @property
    def tmdb(self) -> MovieServiceInterface:
        if self._tmdb is None:
            self._tmdb = TMDBServiceFactory.create_movie_service()
        return self._tmdb

    def _member_watches(self, group_id: int) -> List[Watch]:
        return self.watch_repository.list_for_users(self.group_repository.member_ids(group_id))

    def get_recommendations(
        self, group_id: int, requesting_user_id: int, count: int = DEFAULT_RECOMMENDATION_COUNT
    ) -> List[Dict[str, Any]]:
        if count is None or count < 1:
            raise ValidationException("count must be at least 1")
        if not self.memberships.is_member(group_id, requesting_user_id):
            logger.warning(
                f"User {requesting_user_id} attempted to get recommendations for group {group_id} without membership"
            )
            return []
        return self._recommend(group_id, self._member_watches(group_id), count)

    def _recommend(self, group_id: int, member_watches: List[Watch], count: int) -> List[Dict[str, Any]]:
        watched = {w.movie.tmdb_id for w in member_watches if w.movie is not None}
        logger.info(f"Group {group_id} has watched {len(watched)} unique movies")

        try:
            popular = self.tmdb.get_popular_movies()
        except TMDBError as e:
            logger.error(f"Error fetching popular movies: {e.message}")
            raise CatalogUnavailableException()
        results = popular.data.get("results", []) if popular.success else []
        if not results:
            logger.warning("No popular movies returned from TMDB")
            return []

        picks = [movie for movie in results if movie.get("id") not in watched][:count]
        logger.info(f"Returning {len(picks)} recommendations for group {group_id}")
        return picks

    def get_recommendation_stats(self, group_id: int, requesting_user_id: int) -> GroupRecommendationStats:
        group = self.group_repository.get(group_id)
        if group is None or not self.memberships.is_member(group_id, requesting_user_id):
            logger.warning(
                f"User {requesting_user_id} attempted to get recommendation stats for group {group_id} "
                f"without membership"
            )
            return GroupRecommendationStats(group_id=group_id)

        watches = self._member_watches(group_id)
        # Ratings of members who keep them to themselves stay out of the average
        ratings = [w.rating for w in watches if w.rating is not None and w.user.share_ratings]

        movies = {w.movie_id: w.movie for w in watches if w.movie is not None}
        genres = Counter(genre for movie in movies.values() for genre in (movie.genres or []))
        top_genres = dict(sorted(genres.items(), key=lambda item: (-item[1], item[0])))

        return GroupRecommendationStats(
            group_id=group_id,
            group_name=group.name,
            total_movies_watched=len(movies),
            average_group_rating=round(sum(ratings) / len(ratings), 1) if ratings else None,
            top_genres=top_genres,
            preferred_genres=list(top_genres)[:PREFERRED_GENRES_LIMIT],
            recommendations=self._recommend(group_id, watches, DEFAULT_RECOMMENDATION_COUNT),
        )
