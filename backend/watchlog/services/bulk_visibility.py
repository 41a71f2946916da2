import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from watchlog.core.enums import EnumHelper, GroupOperation
from watchlog.core.exceptions import SharingInvariantViolation, ValidationException
from watchlog.core.interfaces import MembershipProviderInterface
from watchlog.models.watch import Watch
from watchlog.repositories.watch_repository import WatchRepository
from watchlog.services.sharing_policy import SharingPolicy

logger = logging.getLogger(__name__)

NOT_FOUND_OR_NOT_OWNED = "not found or not owned"
STORE_FAILURE = "update failed"


@dataclass
class BulkUpdateResult:
    """Outcome of a best-effort batch: items are accounted for one by one."""
    updated: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.failed == 0

    def record_failure(self, watch_id: int, reason: str) -> None:
        self.failed += 1
        self.errors.append(f"watch {watch_id}: {reason}")


class BulkVisibilityMutator:
    """Applies one visibility change to many watches, continuing past failures.

    Each item is loaded, checked and committed on its own, so a failure never
    undoes the items before it.
    """

    def __init__(
        self,
        db: Session,
        memberships: MembershipProviderInterface,
        policy: Optional[SharingPolicy] = None,
    ):
        self.db = db
        self.memberships = memberships
        self.policy = policy or SharingPolicy(memberships)
        self.watch_repository = WatchRepository(db)

    def apply(
        self,
        owner_id: int,
        watch_ids: Optional[List[int]],
        is_private: bool,
        candidate_group_ids: Optional[Iterable[int]],
        group_operation: Optional[str],
    ) -> BulkUpdateResult:
        if not watch_ids:
            raise ValidationException("watchIds must contain at least one watch id")
        operation = EnumHelper.parse(GroupOperation, group_operation)
        if operation is None:
            raise ValidationException("Invalid groupOperation. Must be 'add' or 'replace'.")

        owner_groups = self.memberships.list_memberships(owner_id)
        candidates = set(candidate_group_ids or [])
        foreign = candidates - owner_groups
        if foreign and not is_private:
            logger.warning(f"User {owner_id} bulk-shared with non-member groups {sorted(foreign)}; ignoring them")
        allowed = candidates & owner_groups

        result = BulkUpdateResult()
        for watch_id in watch_ids:
            self._apply_one(result, owner_id, watch_id, is_private, allowed, operation)

        logger.info(
            f"Bulk visibility update for user {owner_id}: "
            f"{result.updated} updated, {result.failed} failed"
        )
        return result

    def _apply_one(
        self,
        result: BulkUpdateResult,
        owner_id: int,
        watch_id: int,
        is_private: bool,
        allowed: Set[int],
        operation: GroupOperation,
    ) -> None:
        try:
            watch = self.watch_repository.get_owned(watch_id, owner_id)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Error loading watch {watch_id}")
            result.record_failure(watch_id, STORE_FAILURE)
            return
        if watch is None:
            result.record_failure(watch_id, NOT_FOUND_OR_NOT_OWNED)
            return

        new_shares = self.compute_shares(watch, is_private, allowed, operation)
        try:
            self.policy.check(is_private, new_shares)
        except SharingInvariantViolation as e:
            logger.warning(f"Bulk update skipped watch {watch_id}: {e.reason}")
            result.record_failure(watch_id, e.reason)
            return

        try:
            self.watch_repository.save_sharing(watch, is_private, new_shares)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Error updating watch {watch_id}")
            result.record_failure(watch_id, STORE_FAILURE)
            return
        result.updated += 1

    @staticmethod
    def compute_shares(
        watch: Watch,
        is_private: bool,
        allowed: Set[int],
        operation: GroupOperation,
    ) -> Set[int]:
        if is_private:
            return set()
        if operation == GroupOperation.ADD:
            return set(watch.group_ids) | allowed
        return set(allowed)
