import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from watchlog.core.enums import WatchSortKey
from watchlog.core.exceptions import ValidationException
from watchlog.models.movie import Movie
from watchlog.models.watch import Watch
from watchlog.services.filters import WatchFilter


@dataclass
class MovieGroup:
    """All of one user's surviving watches of a single movie."""
    movie_id: int
    movie: Optional[Movie]
    watch_count: int
    average_rating: Optional[float]
    latest_rating: Optional[int]
    watches: List[Watch] = field(default_factory=list)

    @property
    def last_watched_date(self) -> datetime:
        return self.watches[0].watched_date

    @property
    def title(self) -> str:
        return self.movie.title if self.movie is not None else ""


@dataclass
class GroupedPage:
    items: List[MovieGroup]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    has_more: bool


def _newest_first(watches: Iterable[Watch]) -> List[Watch]:
    return sorted(watches, key=lambda w: (w.watched_date, w.id or 0), reverse=True)


def average_rating(watches: Iterable[Watch]) -> Optional[float]:
    """Mean of the rated watches rounded to one decimal, None when nothing is rated."""
    ratings = [w.rating for w in watches if w.rating is not None]
    if not ratings:
        return None
    return round(sum(ratings) / len(ratings), 1)


class GroupingAggregator:
    """Groups a user's watches by movie and pages over the groups, not the rows."""

    def build_groups(self, watches: Iterable[Watch]) -> List[MovieGroup]:
        partitions: Dict[int, List[Watch]] = {}
        for watch in watches:
            partitions.setdefault(watch.movie_id, []).append(watch)

        groups = []
        for movie_id, members in partitions.items():
            ordered = _newest_first(members)
            groups.append(MovieGroup(
                movie_id=movie_id,
                movie=ordered[0].movie,
                watch_count=len(ordered),
                average_rating=average_rating(ordered),
                latest_rating=ordered[0].rating,
                watches=ordered,
            ))
        return groups

    def sort_groups(self, groups: List[MovieGroup], sort_by: WatchSortKey) -> List[MovieGroup]:
        # Title order first; the stable sorts below keep it as the tie-breaker
        ordered = sorted(groups, key=lambda g: (g.title.lower(), g.movie_id))
        if sort_by == WatchSortKey.TITLE_ASC:
            return ordered
        if sort_by == WatchSortKey.HIGHEST_RATED:
            return sorted(
                ordered,
                key=lambda g: (g.average_rating is not None, g.average_rating or 0.0, g.last_watched_date),
                reverse=True,
            )
        if sort_by == WatchSortKey.MOST_WATCHED:
            return sorted(ordered, key=lambda g: (g.watch_count, g.last_watched_date), reverse=True)
        return sorted(ordered, key=lambda g: g.last_watched_date, reverse=True)

    def aggregate(
        self,
        watches: Iterable[Watch],
        watch_filter: WatchFilter,
        page: int,
        page_size: int,
        group_id: Optional[int] = None,
    ) -> GroupedPage:
        if page is None or page < 1:
            raise ValidationException("page must be at least 1")
        if page_size is None or page_size < 1:
            raise ValidationException("pageSize must be at least 1")

        surviving = [
            w for w in watches
            if watch_filter.accepts(w) and (group_id is None or group_id in w.group_ids)
        ]
        groups = self.sort_groups(self.build_groups(surviving), watch_filter.sort_by)

        total_count = len(groups)
        total_pages = math.ceil(total_count / page_size)
        start = (page - 1) * page_size

        return GroupedPage(
            items=groups[start:start + page_size],
            total_count=total_count,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
            has_more=page < total_pages,
        )
