from .base_repository import BaseRepository
from .group_repository import GroupRepository
from .movie_repository import MovieRepository
from .watch_repository import WatchRepository

__all__ = [
    "BaseRepository",
    "GroupRepository",
    "MovieRepository",
    "WatchRepository",
]
