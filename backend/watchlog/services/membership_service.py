from typing import Dict, List, Set

from sqlalchemy.orm import Session

from watchlog.core.interfaces import MembershipProviderInterface
from watchlog.models.group import Group, GroupRole
from watchlog.repositories.group_repository import GroupRepository


class MembershipService(MembershipProviderInterface):
    """Current group memberships, read straight from the group_members table."""

    def __init__(self, db: Session):
        self.db = db
        self.group_repository = GroupRepository(db)

    def list_memberships(self, user_id: int) -> Set[int]:
        return set(self.group_repository.roles_for_user(user_id))

    def list_memberships_with_role(self, user_id: int) -> Dict[int, GroupRole]:
        return self.group_repository.roles_for_user(user_id)

    def is_member(self, group_id: int, user_id: int) -> bool:
        return self.group_repository.is_member(group_id, user_id)

    def list_groups(self, user_id: int) -> List[Group]:
        return self.group_repository.groups_for_user(user_id)
