from abc import ABC, abstractmethod
from typing import Dict, Optional, Set
from dataclasses import dataclass

@dataclass
class TMDBConfig:
    """Connection settings for the TMDB v3 API"""
    api_key: str
    base_url: str = "https://api.themoviedb.org/3"
    language: str = "en-US"
    timeout: int = 10  # seconds

@dataclass
class TMDBResponse:
    """Decoded TMDB payload; success is false for any non-200 status"""
    data: Dict
    status_code: int
    success: bool

class TMDBError(Exception):
    """Raised when TMDB cannot be reached at all"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

class TMDBClientInterface(ABC):
    """Performs one GET against the catalog API"""

    @abstractmethod
    def make_request(self, endpoint: str, params: Optional[Dict] = None) -> TMDBResponse:
        ...

class MovieServiceInterface(ABC):
    """Movie metadata lookups: imports and group recommendations"""

    @abstractmethod
    def get_popular_movies(self, page: int = 1) -> TMDBResponse:
        ...

    @abstractmethod
    def get_movie_details(self, movie_id: int) -> TMDBResponse:
        ...

    @abstractmethod
    def get_movie_credits(self, movie_id: int) -> TMDBResponse:
        ...

class MovieCatalogInterface(ABC):
    """Resolves canonical movie metadata for a catalog (TMDB) id"""

    @abstractmethod
    def get_or_create_movie(self, tmdb_id: int):
        """Return the local Movie row for tmdb_id, importing it if needed"""
        ...

class MembershipProviderInterface(ABC):
    """Read-only view of who belongs to which group right now"""

    @abstractmethod
    def list_memberships(self, user_id: int) -> Set[int]:
        """Return the ids of the groups user_id currently belongs to"""
        ...

    @abstractmethod
    def list_memberships_with_role(self, user_id: int) -> Dict:
        """Return {group_id: GroupRole} for user_id"""
        ...

    def is_member(self, group_id: int, user_id: int) -> bool:
        return group_id in self.list_memberships(user_id)
