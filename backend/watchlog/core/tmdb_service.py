import logging
from typing import Optional
from .interfaces import TMDBConfig
from .tmdb_client import TMDBClient
from .services import MovieService

logger = logging.getLogger(__name__)

class TMDBServiceFactory:
    """Factory class for creating TMDB services"""

    @staticmethod
    def create_movie_service(api_key: Optional[str] = None, language: Optional[str] = None) -> MovieService:
        """Create a movie service configured from settings unless overridden"""
        from watchlog.core.config import get_settings

        settings = get_settings()
        if api_key is None:
            api_key = settings.TMDB_API_KEY
        if not api_key:
            logger.warning("TMDB_API_KEY is not configured; catalog lookups will fail")

        config = TMDBConfig(
            api_key=api_key,
            base_url=settings.TMDB_BASE_URL,
            language=language or settings.TMDB_LANGUAGE,
        )
        return MovieService(TMDBClient(config))
