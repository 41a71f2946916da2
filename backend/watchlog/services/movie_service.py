import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from watchlog.core.exceptions import CatalogUnavailableException, MovieNotFoundException
from watchlog.core.interfaces import MovieCatalogInterface, MovieServiceInterface, TMDBError
from watchlog.core.tmdb_service import TMDBServiceFactory
from watchlog.models.movie import Movie
from watchlog.repositories.movie_repository import MovieRepository

logger = logging.getLogger(__name__)


class MovieCatalogService(MovieCatalogInterface):
    """Local movie rows, imported from TMDB the first time someone logs one."""

    def __init__(self, db: Session, tmdb: Optional[MovieServiceInterface] = None):
        self.db = db
        self.movie_repository = MovieRepository(db)
        self._tmdb = tmdb

    @property
    def tmdb(self) -> MovieServiceInterface:
        if self._tmdb is None:
            self._tmdb = TMDBServiceFactory.create_movie_service()
        return self._tmdb

    def get_or_create_movie(self, tmdb_id: int) -> Movie:
        movie = self.movie_repository.get_by_tmdb_id(tmdb_id)
        if movie:
            return movie

        fields = self._fetch_metadata(tmdb_id)
        try:
            movie = self.movie_repository.create(fields)
        except IntegrityError:
            # Another request imported the same movie first
            self.db.rollback()
            movie = self.movie_repository.get_by_tmdb_id(tmdb_id)
            if movie is None:
                raise
        logger.info(f"Imported movie {movie.title!r} (tmdb {tmdb_id}) as id {movie.id}")
        return movie

    def _fetch_metadata(self, tmdb_id: int) -> Dict[str, Any]:
        try:
            details = self.tmdb.get_movie_details(tmdb_id)
        except TMDBError as e:
            logger.error(f"Error fetching movie details for tmdb {tmdb_id}: {e.message}")
            raise CatalogUnavailableException()

        if not details.success:
            if details.status_code == 404:
                raise MovieNotFoundException(f"Movie with TMDB id {tmdb_id} not found")
            raise CatalogUnavailableException()

        fields = self._parse_details(tmdb_id, details.data)
        fields["director_name"] = self._fetch_director(tmdb_id)
        return fields

    def _fetch_director(self, tmdb_id: int) -> Optional[str]:
        try:
            credits = self.tmdb.get_movie_credits(tmdb_id)
        except TMDBError as e:
            logger.warning(f"Credits unavailable for tmdb {tmdb_id}: {e.message}")
            return None
        if not credits.success:
            return None
        for member in credits.data.get("crew", []):
            if member.get("job") == "Director":
                return member.get("name")
        return None

    @staticmethod
    def _parse_details(tmdb_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        release_date = data.get("release_date") or ""
        year = int(release_date[:4]) if release_date[:4].isdigit() else None
        return {
            "tmdb_id": tmdb_id,
            "title": data.get("title") or data.get("original_title") or f"TMDB {tmdb_id}",
            "year": year,
            "poster_path": data.get("poster_path"),
            "backdrop_path": data.get("backdrop_path"),
            "synopsis": data.get("overview"),
            "tagline": data.get("tagline") or None,
            "runtime": data.get("runtime"),
            "genres": [g["name"] for g in data.get("genres", []) if g.get("name")],
            "tmdb_rating": data.get("vote_average"),
            "tmdb_vote_count": data.get("vote_count"),
        }
