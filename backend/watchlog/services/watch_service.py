import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from watchlog.core.exceptions import WatchNotFoundException
from watchlog.core.interfaces import MembershipProviderInterface, MovieCatalogInterface
from watchlog.models.watch import Watch
from watchlog.repositories.watch_repository import WatchRepository
from watchlog.schemas.watch import WatchCreate, WatchResponse, WatchUpdate
from watchlog.services.filters import WatchFilter, parse_sort_key
from watchlog.services.grouping import GroupedPage, GroupingAggregator
from watchlog.services.membership_service import MembershipService
from watchlog.services.movie_service import MovieCatalogService
from watchlog.services.sharing_policy import SharingDecision, SharingPolicy

logger = logging.getLogger(__name__)

SCALAR_FIELDS = ("watched_date", "rating", "notes", "watch_location", "watched_with", "is_rewatch")


def to_utc_naive(value: datetime) -> datetime:
    """Watch dates are stored as naive UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


@dataclass
class GroupedWatchesQuery:
    page: int = 1
    page_size: int = 20
    search: Optional[str] = None
    rating_min: Optional[float] = None
    rating_max: Optional[float] = None
    watched_from: Optional[date] = None
    watched_to: Optional[date] = None
    rewatch_only: bool = False
    unrated_only: bool = False
    sort_by: Optional[str] = None
    group_id: Optional[int] = None

    def to_filter(self) -> WatchFilter:
        return WatchFilter(
            search=self.search,
            rating_min=self.rating_min,
            rating_max=self.rating_max,
            watched_from=self.watched_from,
            watched_to=self.watched_to,
            rewatch_only=bool(self.rewatch_only),
            unrated_only=bool(self.unrated_only),
            sort_by=parse_sort_key(self.sort_by),
        )


class WatchService:
    """Single-watch operations plus the grouped listing"""

    def __init__(
        self,
        db: Session,
        catalog: Optional[MovieCatalogInterface] = None,
        memberships: Optional[MembershipProviderInterface] = None,
    ):
        self.db = db
        self.watch_repository = WatchRepository(db)
        self.catalog = catalog or MovieCatalogService(db)
        self.memberships = memberships or MembershipService(db)
        self.policy = SharingPolicy(self.memberships)
        self.aggregator = GroupingAggregator()

    # ── Reads ──────────────────────────────────────────────

    def get_watch(self, watch_id: int, viewer_id: int) -> WatchResponse:
        """Return a watch as viewer_id is allowed to see it.

        Third parties see it only when it is shared with one of their groups
        and the owner shares watches; rating and notes follow the owner's
        privacy toggles, and only the viewer's own groups are listed.
        """
        watch = self.watch_repository.get(watch_id)
        if watch is None:
            raise WatchNotFoundException()
        if watch.user_id == viewer_id:
            return WatchResponse.model_validate(watch)

        viewer_groups = self.memberships.list_memberships(viewer_id)
        if not self.policy.is_visible_to(watch, viewer_id, viewer_groups):
            raise WatchNotFoundException()

        owner = watch.user
        if not owner.share_watches:
            raise WatchNotFoundException()
        response = WatchResponse.model_validate(watch)
        return response.model_copy(update={
            "rating": watch.rating if owner.share_ratings else None,
            "notes": watch.notes if owner.share_notes else None,
            "group_ids": sorted(set(watch.group_ids) & set(viewer_groups)),
        })

    def list_watches(self, owner_id: int, group_id: Optional[int] = None) -> List[Watch]:
        return self.watch_repository.list_for_owner(owner_id, group_id)

    def list_watches_for_movie(self, owner_id: int, movie_id: int) -> List[Watch]:
        return self.watch_repository.list_for_owner_and_movie(owner_id, movie_id)

    def get_grouped_watches(self, owner_id: int, query: GroupedWatchesQuery) -> GroupedPage:
        watch_filter = query.to_filter()
        watches = self.watch_repository.list_for_owner(owner_id, query.group_id)
        return self.aggregator.aggregate(
            watches, watch_filter, query.page, query.page_size, group_id=query.group_id
        )

    # ── Writes ─────────────────────────────────────────────

    def create_watch(self, owner_id: int, payload: WatchCreate) -> Watch:
        decision = self._decide_sharing(owner_id, payload.is_private, payload.group_ids, payload.share_with_all_groups)
        movie = self.catalog.get_or_create_movie(payload.tmdb_id)

        fields = {
            "user_id": owner_id,
            "movie_id": movie.id,
            "watched_date": to_utc_naive(payload.watched_date),
            "rating": payload.rating,
            "notes": payload.notes,
            "watch_location": payload.watch_location,
            "watched_with": payload.watched_with,
            "is_rewatch": payload.is_rewatch,
            "is_private": decision.is_private,
        }
        try:
            watch = self.watch_repository.create_with_shares(fields, decision.shares)
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"User {owner_id} logged watch {watch.id} of movie {movie.id} (shared with {sorted(decision.shares)})")
        return watch

    def update_watch(self, owner_id: int, watch_id: int, payload: WatchUpdate) -> Watch:
        watch = self.watch_repository.get_owned(watch_id, owner_id)
        if watch is None:
            raise WatchNotFoundException()

        changes = payload.model_dump(exclude_unset=True)
        decision = None
        if payload.is_private is not None:
            decision = self._decide_sharing(owner_id, payload.is_private, payload.group_ids, payload.share_with_all_groups)

        for name in SCALAR_FIELDS:
            if name not in changes:
                continue
            value = changes[name]
            if name == "watched_date":
                if value is None:
                    continue
                value = to_utc_naive(value)
            if name == "is_rewatch" and value is None:
                continue
            setattr(watch, name, value)

        if decision is not None:
            watch.is_private = decision.is_private
            self.watch_repository.set_shares(watch, decision.shares)

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"User {owner_id} updated watch {watch_id}")
        return self.watch_repository.get(watch_id)

    def delete_watch(self, owner_id: int, watch_id: int) -> None:
        watch = self.watch_repository.get_owned(watch_id, owner_id)
        if watch is None:
            raise WatchNotFoundException()
        self.watch_repository.delete(watch)
        logger.info(f"User {owner_id} deleted watch {watch_id}")

    def _decide_sharing(
        self,
        owner_id: int,
        is_private: Optional[bool],
        group_ids: List[int],
        share_with_all_groups: bool,
    ) -> SharingDecision:
        if share_with_all_groups:
            # Stored as the concrete list of today's groups
            group_ids = sorted(set(group_ids) | self.policy.all_groups(owner_id))
        if is_private is None:
            is_private = not (group_ids or share_with_all_groups)
        return self.policy.normalize(owner_id, is_private, group_ids)
