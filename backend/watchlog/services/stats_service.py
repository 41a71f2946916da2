import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from watchlog.models.movie import Movie
from watchlog.repositories.watch_repository import WatchRepository
from watchlog.services.grouping import average_rating

logger = logging.getLogger(__name__)

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
TOP_REWATCHED_LIMIT = 5
UNKNOWN_LOCATION = "Unknown"


@dataclass
class RatingCount:
    rating: int
    count: int


@dataclass
class YearCount:
    year: int
    count: int


@dataclass
class MonthCount:
    month: int
    month_name: str
    count: int


@dataclass
class DecadeCount:
    decade: str
    count: int


@dataclass
class LocationCount:
    location: str
    count: int


@dataclass
class RewatchedMovie:
    movie: Movie
    watch_count: int


@dataclass
class UserStats:
    total_movies: int = 0
    total_watches: int = 0
    total_rewatches: int = 0
    average_rating: Optional[float] = None
    ratings_distribution: List[RatingCount] = field(default_factory=list)
    watches_by_year: List[YearCount] = field(default_factory=list)
    watches_by_month: List[MonthCount] = field(default_factory=list)
    watches_by_decade: List[DecadeCount] = field(default_factory=list)
    watches_by_location: List[LocationCount] = field(default_factory=list)
    top_rewatched: List[RewatchedMovie] = field(default_factory=list)


class StatsService:
    """Personal viewing statistics over all of a user's own watches.

    Private watches count too: the numbers are only ever shown to their owner.
    """

    def __init__(self, db: Session):
        self.db = db
        self.watch_repository = WatchRepository(db)

    def get_user_stats(self, user_id: int, year: Optional[int] = None) -> UserStats:
        """Totals and breakdowns for user_id; the month breakdown covers `year` (default: this year)."""
        year = year or datetime.utcnow().year
        watches = self.watch_repository.list_for_owner(user_id)

        ratings = Counter(w.rating for w in watches if w.rating is not None)
        months = Counter(w.watched_date.month for w in watches if w.watched_date.year == year)
        stats = UserStats(
            total_movies=len({w.movie_id for w in watches}),
            total_watches=len(watches),
            total_rewatches=sum(1 for w in watches if w.is_rewatch),
            average_rating=average_rating(watches),
            ratings_distribution=[RatingCount(r, ratings.get(r, 0)) for r in range(1, 11)],
            watches_by_month=[
                MonthCount(m, MONTH_NAMES[m - 1], months.get(m, 0)) for m in range(1, 13)
            ],
        )
        if not watches:
            return stats

        by_year = Counter(w.watched_date.year for w in watches)
        stats.watches_by_year = [YearCount(y, by_year[y]) for y in sorted(by_year)]

        by_decade = Counter(
            (w.movie.year // 10) * 10 for w in watches if w.movie is not None and w.movie.year is not None
        )
        stats.watches_by_decade = [DecadeCount(f"{d}s", by_decade[d]) for d in sorted(by_decade)]

        by_location = Counter((w.watch_location or "").strip() or UNKNOWN_LOCATION for w in watches)
        stats.watches_by_location = [
            LocationCount(location, count)
            for location, count in sorted(by_location.items(), key=lambda item: (-item[1], item[0]))
        ]

        stats.top_rewatched = self._top_rewatched(watches)
        logger.info(f"Computed stats for user {user_id}: {stats.total_watches} watches")
        return stats

    @staticmethod
    def _top_rewatched(watches) -> List[RewatchedMovie]:
        counts = Counter(w.movie_id for w in watches)
        movies = {w.movie_id: w.movie for w in watches}
        repeated = [movie_id for movie_id, count in counts.items() if count > 1]
        repeated.sort(key=lambda movie_id: (-counts[movie_id], movie_id))
        return [RewatchedMovie(movies[m], counts[m]) for m in repeated[:TOP_REWATCHED_LIMIT]]
