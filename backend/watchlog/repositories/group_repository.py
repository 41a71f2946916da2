from typing import Dict, List

from sqlalchemy.orm import Session

from watchlog.models.group import Group, GroupMember, GroupRole
from watchlog.repositories.base_repository import BaseRepository


class GroupRepository(BaseRepository[Group]):
    """Group and membership lookups"""

    def __init__(self, db: Session):
        super().__init__(Group, db)

    def roles_for_user(self, user_id: int) -> Dict[int, GroupRole]:
        rows = (
            self.db.query(GroupMember.group_id, GroupMember.role)
            .filter(GroupMember.user_id == user_id)
            .all()
        )
        return {group_id: role for group_id, role in rows}

    def is_member(self, group_id: int, user_id: int) -> bool:
        return (
            self.db.query(GroupMember)
            .filter(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
            .first()
            is not None
        )

    def groups_for_user(self, user_id: int) -> List[Group]:
        return (
            self.db.query(Group)
            .join(GroupMember, GroupMember.group_id == Group.id)
            .filter(GroupMember.user_id == user_id)
            .order_by(Group.name, Group.id)
            .all()
        )

    def member_ids(self, group_id: int) -> List[int]:
        rows = self.db.query(GroupMember.user_id).filter(GroupMember.group_id == group_id).all()
        return [user_id for (user_id,) in rows]
