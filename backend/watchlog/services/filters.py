"""Watch filtering for the grouped listing.

A ``WatchFilter`` holds the optional constraints of a listing request and
answers ``accepts(watch)`` for a single watch. Absent fields impose nothing;
numeric and date bounds are inclusive; ``rewatch_only`` and ``unrated_only``
stack as independent constraints.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional

from watchlog.core.enums import EnumHelper, WatchSortKey
from watchlog.core.exceptions import ValidationException
from watchlog.models.watch import Watch


def parse_sort_key(value: Optional[str]) -> WatchSortKey:
    """Map a wire sort name to a WatchSortKey; None means recentlyWatched."""
    if value is None or value == "":
        return WatchSortKey.RECENTLY_WATCHED
    key = EnumHelper.parse(WatchSortKey, value)
    if key is None:
        allowed = ", ".join(k.value for k in WatchSortKey)
        raise ValidationException(f"Invalid sortBy '{value}'. Must be one of: {allowed}")
    return key


def _as_date(value) -> date:
    return value.date() if isinstance(value, datetime) else value


@dataclass(frozen=True)
class WatchFilter:
    search: Optional[str] = None
    rating_min: Optional[float] = None
    rating_max: Optional[float] = None
    watched_from: Optional[date] = None
    watched_to: Optional[date] = None
    rewatch_only: bool = False
    unrated_only: bool = False
    sort_by: WatchSortKey = WatchSortKey.RECENTLY_WATCHED

    def __post_init__(self):
        if self.rating_min is not None and self.rating_max is not None and self.rating_min > self.rating_max:
            raise ValidationException(
                f"ratingMin ({self.rating_min}) cannot be greater than ratingMax ({self.rating_max})"
            )
        if self.watched_from is not None and self.watched_to is not None:
            if _as_date(self.watched_from) > _as_date(self.watched_to):
                raise ValidationException(
                    f"watchedFrom ({self.watched_from}) cannot be after watchedTo ({self.watched_to})"
                )

    @property
    def search_term(self) -> Optional[str]:
        if self.search is None:
            return None
        term = self.search.strip().lower()
        return term or None

    def accepts(self, watch: Watch) -> bool:
        term = self.search_term
        if term is not None:
            title = (watch.movie.title if watch.movie is not None else "") or ""
            if term not in title.lower():
                return False

        if self.rating_min is not None or self.rating_max is not None:
            # A bound can never be met by an unrated watch
            if watch.rating is None:
                return False
            if self.rating_min is not None and watch.rating < self.rating_min:
                return False
            if self.rating_max is not None and watch.rating > self.rating_max:
                return False

        watched_on = _as_date(watch.watched_date)
        if self.watched_from is not None and watched_on < _as_date(self.watched_from):
            return False
        if self.watched_to is not None and watched_on > _as_date(self.watched_to):
            return False

        if self.rewatch_only and not watch.is_rewatch:
            return False
        if self.unrated_only and watch.rating is not None:
            return False
        return True

    def as_predicate(self) -> Callable[[Watch], bool]:
        return self.accepts
