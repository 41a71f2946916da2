from typing import Optional
from sqlalchemy.orm import Session
from watchlog.repositories.base_repository import BaseRepository
from watchlog.models.movie import Movie

class MovieRepository(BaseRepository[Movie]):
    """Movie repository keyed by catalog id"""

    def __init__(self, db: Session):
        super().__init__(Movie, db)

    def get_by_tmdb_id(self, tmdb_id: int) -> Optional[Movie]:
        """Get movie by its TMDB id"""
        return self.find_one(tmdb_id=tmdb_id)
