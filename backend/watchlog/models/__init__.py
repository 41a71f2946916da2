from watchlog.db import Base
from .user import User
from .movie import Movie
from .group import Group, GroupMember, GroupRole
from .watch import Watch, WatchShare

__all__ = [
    'Base', 'User', 'Movie', 'Group', 'GroupMember', 'GroupRole', 'Watch', 'WatchShare'
]
