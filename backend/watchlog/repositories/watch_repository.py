from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload, selectinload

from watchlog.models.user import User
from watchlog.models.watch import Watch, WatchShare
from watchlog.repositories.base_repository import BaseRepository


class WatchRepository(BaseRepository[Watch]):
    """Watch persistence, including the share rows hanging off each watch"""

    def __init__(self, db: Session):
        super().__init__(Watch, db)

    def _query(self):
        return self.db.query(Watch).options(
            joinedload(Watch.movie),
            joinedload(Watch.user),
            selectinload(Watch.shares),
        )

    @staticmethod
    def _newest_first(query):
        return query.order_by(Watch.watched_date.desc(), Watch.id.desc())

    def get(self, id: Any) -> Optional[Watch]:
        return self._query().filter(Watch.id == id).first()

    def get_owned(self, watch_id: int, owner_id: int) -> Optional[Watch]:
        """Return the watch only when owner_id owns it"""
        return self._query().filter(Watch.id == watch_id, Watch.user_id == owner_id).first()

    def list_for_owner(self, owner_id: int, group_id: Optional[int] = None) -> List[Watch]:
        query = self._query().filter(Watch.user_id == owner_id)
        if group_id is not None:
            query = query.filter(Watch.shares.any(WatchShare.group_id == group_id))
        return self._newest_first(query).all()

    def list_for_users(self, user_ids: Iterable[int]) -> List[Watch]:
        user_ids = list(user_ids)
        if not user_ids:
            return []
        return self._newest_first(self._query().filter(Watch.user_id.in_(user_ids))).all()

    def list_for_owner_and_movie(self, owner_id: int, movie_id: int) -> List[Watch]:
        query = self._query().filter(Watch.user_id == owner_id, Watch.movie_id == movie_id)
        return self._newest_first(query).all()

    def create_with_shares(self, fields: Dict[str, Any], group_ids: Iterable[int]) -> Watch:
        """Insert a watch and its shares in one transaction"""
        watch = Watch(**fields)
        self.set_shares(watch, group_ids)
        self.db.add(watch)
        self.db.commit()
        return self.get(watch.id)

    def set_shares(self, watch: Watch, group_ids: Iterable[int]) -> None:
        """Make the watch's share rows equal group_ids, keeping shared_at of survivors"""
        wanted = set(group_ids)
        for share in list(watch.shares):
            if share.group_id not in wanted:
                watch.shares.remove(share)
        existing = {s.group_id for s in watch.shares}
        for group_id in sorted(wanted - existing):
            watch.shares.append(WatchShare(group_id=group_id))

    def save_sharing(self, watch: Watch, is_private: bool, group_ids: Iterable[int]) -> Watch:
        """Persist a new visibility state for one watch as a single transaction"""
        watch.is_private = is_private
        self.set_shares(watch, group_ids)
        self.db.commit()
        self.db.refresh(watch)
        return watch

    def shared_with_groups(
        self,
        group_ids: Iterable[int],
        viewer_id: int,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Watch]:
        """Non-private watches shared with any of group_ids, newest first.

        Watches of owners who switched off share_watches are left out, except
        the viewer's own.
        """
        group_ids = list(group_ids)
        if not group_ids:
            return []
        query = self._query().filter(
            Watch.is_private.is_(False),
            Watch.shares.any(WatchShare.group_id.in_(group_ids)),
            or_(Watch.user_id == viewer_id, Watch.user.has(User.share_watches.is_(True))),
        )
        query = self._newest_first(query).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()
