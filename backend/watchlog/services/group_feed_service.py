import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from watchlog.core.exceptions import ValidationException
from watchlog.core.interfaces import MembershipProviderInterface
from watchlog.models.movie import Movie
from watchlog.models.watch import Watch
from watchlog.repositories.group_repository import GroupRepository
from watchlog.repositories.watch_repository import WatchRepository
from watchlog.services.grouping import average_rating

logger = logging.getLogger(__name__)

TOP_MOVIES_LIMIT = 10


@dataclass
class FeedEntry:
    """A watch as shown to another group member, with owner privacy applied."""
    id: int
    user_id: int
    username: str
    owner_is_deactivated: bool
    movie_id: int
    movie: Movie
    watched_date: datetime
    rating: Optional[int]
    notes: Optional[str]
    watch_location: Optional[str]
    watched_with: Optional[str]
    is_rewatch: bool


@dataclass
class FeedPage:
    items: List[FeedEntry]
    skip: int
    take: int
    has_more: bool


@dataclass
class MovieWatchStats:
    movie_id: int
    movie: Movie
    watch_count: int
    average_rating: Optional[float]
    watched_by_usernames: List[str] = field(default_factory=list)


@dataclass
class GroupFeedStats:
    group_id: int
    group_name: str = ""
    total_watches: int = 0
    unique_movies: int = 0
    active_members: int = 0
    average_group_rating: Optional[float] = None
    watches: List[FeedEntry] = field(default_factory=list)
    top_movies: List[MovieWatchStats] = field(default_factory=list)


class GroupFeedQuery:
    """Read side of group sharing: what a member sees of a group's watches.

    Membership is the only gate. A non-member gets an empty result rather than
    an error, so the response does not confirm that the group exists.
    """

    def __init__(self, db: Session, memberships: MembershipProviderInterface):
        self.db = db
        self.memberships = memberships
        self.watch_repository = WatchRepository(db)
        self.group_repository = GroupRepository(db)

    @staticmethod
    def _check_window(skip: int, take: int) -> None:
        if skip is None or skip < 0:
            raise ValidationException("skip must be zero or greater")
        if take is None or take < 1:
            raise ValidationException("take must be at least 1")

    def feed(self, group_id: int, requesting_user_id: int, skip: int = 0, take: int = 20) -> FeedPage:
        self._check_window(skip, take)
        if not self.memberships.is_member(group_id, requesting_user_id):
            logger.warning(
                f"User {requesting_user_id} attempted to access feed for group {group_id} without membership"
            )
            return FeedPage(items=[], skip=skip, take=take, has_more=False)

        # One extra row tells us whether another page exists
        rows = self.watch_repository.shared_with_groups([group_id], requesting_user_id, skip, take + 1)
        entries = [
            self.to_entry(w, requesting_user_id)
            for w in rows[:take]
            if not w.is_private and group_id in w.group_ids
        ]
        return FeedPage(items=entries, skip=skip, take=take, has_more=len(rows) > take)

    def combined_feed(self, user_id: int, skip: int = 0, take: int = 20) -> FeedPage:
        """Watches shared with any of the user's groups, each listed once."""
        self._check_window(skip, take)
        group_ids = self.memberships.list_memberships(user_id)
        if not group_ids:
            logger.info(f"User {user_id} is not a member of any groups")
            return FeedPage(items=[], skip=skip, take=take, has_more=False)

        rows = self.watch_repository.shared_with_groups(sorted(group_ids), user_id, skip, take + 1)
        entries = [self.to_entry(w, user_id) for w in rows[:take]]
        return FeedPage(items=entries, skip=skip, take=take, has_more=len(rows) > take)

    def feed_stats(self, group_id: int, requesting_user_id: int, skip: int = 0, take: int = 20) -> GroupFeedStats:
        self._check_window(skip, take)
        group = self.group_repository.get(group_id)
        if group is None or not self.memberships.is_member(group_id, requesting_user_id):
            logger.warning(
                f"User {requesting_user_id} attempted to access feed stats for group {group_id} without membership"
            )
            return GroupFeedStats(group_id=group_id)

        rows = self.watch_repository.shared_with_groups([group_id], requesting_user_id)
        entries = [self.to_entry(w, requesting_user_id) for w in rows]

        return GroupFeedStats(
            group_id=group_id,
            group_name=group.name,
            total_watches=len(entries),
            unique_movies=len({e.movie_id for e in entries}),
            active_members=len({e.user_id for e in entries}),
            average_group_rating=average_rating(entries),
            watches=entries[skip:skip + take],
            top_movies=self._top_movies(entries),
        )

    @staticmethod
    def _top_movies(entries: List[FeedEntry]) -> List[MovieWatchStats]:
        by_movie: Dict[int, List[FeedEntry]] = {}
        for entry in entries:
            by_movie.setdefault(entry.movie_id, []).append(entry)

        stats = []
        for movie_id, movie_entries in by_movie.items():
            usernames = []
            for entry in movie_entries:
                if entry.username not in usernames:
                    usernames.append(entry.username)
            stats.append(MovieWatchStats(
                movie_id=movie_id,
                movie=movie_entries[0].movie,
                watch_count=len(movie_entries),
                average_rating=average_rating(movie_entries),
                watched_by_usernames=usernames,
            ))
        stats.sort(key=lambda s: (-s.watch_count, s.movie.title.lower() if s.movie else "", s.movie_id))
        return stats[:TOP_MOVIES_LIMIT]

    @staticmethod
    def to_entry(watch: Watch, viewer_id: int) -> FeedEntry:
        owner = watch.user
        own = watch.user_id == viewer_id
        return FeedEntry(
            id=watch.id,
            user_id=watch.user_id,
            username=owner.username,
            owner_is_deactivated=bool(owner.is_deactivated),
            movie_id=watch.movie_id,
            movie=watch.movie,
            watched_date=watch.watched_date,
            rating=watch.rating if own or owner.share_ratings else None,
            notes=watch.notes if own or owner.share_notes else None,
            watch_location=watch.watch_location,
            watched_with=watch.watched_with,
            is_rewatch=watch.is_rewatch,
        )
