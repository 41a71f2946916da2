"""Rules governing who may see a watch.

``SharingPolicy.normalize`` is the one place an (is_private, group_ids) pair is
checked before it reaches the database. A private watch is never shared, a
shared watch names at least one group, and every named group is one the owner
belongs to at the time of the write. What gets stored is that concrete list,
so joining a group later does not reveal older watches to it.
"""
import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Set

from watchlog.core.exceptions import ForeignGroupException, MissingGroupsException
from watchlog.core.interfaces import MembershipProviderInterface
from watchlog.models.watch import Watch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SharingDecision:
    is_private: bool
    shares: FrozenSet[int]


def _dedupe(group_ids: Optional[Iterable[int]]) -> list:
    seen = []
    for group_id in group_ids or []:
        if group_id not in seen:
            seen.append(group_id)
    return seen


class SharingPolicy:
    def __init__(self, memberships: MembershipProviderInterface):
        self.memberships = memberships

    def normalize(
        self,
        owner_id: int,
        is_private: bool,
        requested_group_ids: Optional[Iterable[int]],
        owner_groups: Optional[Set[int]] = None,
    ) -> SharingDecision:
        """Validate a visibility request for one of owner_id's watches.

        Raises MissingGroupsException or ForeignGroupException; supplied ids
        are ignored for private watches.
        """
        if is_private:
            return SharingDecision(is_private=True, shares=frozenset())

        requested = _dedupe(requested_group_ids)
        if not requested:
            raise MissingGroupsException()

        if owner_groups is None:
            owner_groups = self.memberships.list_memberships(owner_id)
        for group_id in requested:
            if group_id not in owner_groups:
                logger.warning(f"User {owner_id} attempted to share with group {group_id} without membership")
                raise ForeignGroupException(group_id)

        return SharingDecision(is_private=False, shares=frozenset(requested))

    def check(self, is_private: bool, shares: Iterable[int]) -> None:
        """Raise when a computed share set breaks the private/shared invariant."""
        if not is_private and not set(shares):
            raise MissingGroupsException()

    def all_groups(self, owner_id: int) -> Set[int]:
        """Snapshot of the owner's groups, for 'share with all my groups'."""
        return set(self.memberships.list_memberships(owner_id))

    def is_visible_to(self, watch: Watch, viewer_id: int, viewer_groups: Optional[Set[int]] = None) -> bool:
        """Whether viewer_id may see watch right now.

        Owners always see their watches; anyone else needs the watch to be
        shared and to currently belong to at least one of its groups.
        """
        if watch.user_id == viewer_id:
            return True
        if watch.is_private:
            return False
        if viewer_groups is None:
            viewer_groups = self.memberships.list_memberships(viewer_id)
        return bool(set(watch.group_ids) & set(viewer_groups))
