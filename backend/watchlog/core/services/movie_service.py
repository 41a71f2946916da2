from typing import Dict, Optional
from ..interfaces import MovieServiceInterface, TMDBResponse, TMDBClientInterface
from ..cache import CacheService

CACHE_TTL_24H = 24 * 60 * 60

class MovieService(MovieServiceInterface):
    """Service class for TMDB movie lookups"""

    def __init__(self, client: TMDBClientInterface, cache: Optional[CacheService] = None):
        self.client = client
        self.cache = cache if cache is not None else CacheService()

    def get_popular_movies(self, page: int = 1) -> TMDBResponse:
        """Get popular movies"""
        return self._cached(f"tmdb:movie:popular:p{page}", "movie/popular", {"page": page})

    def get_movie_details(self, movie_id: int) -> TMDBResponse:
        """Get movie details by ID"""
        return self._cached(f"tmdb:movie:{movie_id}:details", f"movie/{movie_id}")

    def get_movie_credits(self, movie_id: int) -> TMDBResponse:
        """Get movie credits by ID"""
        return self._cached(f"tmdb:movie:{movie_id}:credits", f"movie/{movie_id}/credits")

    def _cached(self, cache_key: str, endpoint: str, params: Optional[Dict] = None) -> TMDBResponse:
        cached = self.cache.get_json(cache_key)
        if cached is not None:
            return TMDBResponse(cached, 200, True)
        resp = self.client.make_request(endpoint, params)
        if resp.success:
            self.cache.set_json(cache_key, resp.data, CACHE_TTL_24H)
        return resp
