from typing import Dict, List, Optional
from .base import CamelModel
from .movie import MovieBasicInfo


class RatingCountResponse(CamelModel):
    rating: int
    count: int


class YearCountResponse(CamelModel):
    year: int
    count: int


class MonthCountResponse(CamelModel):
    month: int
    month_name: str
    count: int


class DecadeCountResponse(CamelModel):
    decade: str
    count: int


class LocationCountResponse(CamelModel):
    location: str
    count: int


class RewatchedMovieResponse(CamelModel):
    movie: MovieBasicInfo
    watch_count: int


class UserStatsResponse(CamelModel):
    """Personal viewing statistics, shown only to their owner"""
    total_movies: int
    total_watches: int
    total_rewatches: int
    average_rating: Optional[float] = None
    ratings_distribution: List[RatingCountResponse]
    watches_by_year: List[YearCountResponse]
    watches_by_month: List[MonthCountResponse]
    watches_by_decade: List[DecadeCountResponse]
    watches_by_location: List[LocationCountResponse]
    top_rewatched: List[RewatchedMovieResponse]


class RecommendedMovieResponse(CamelModel):
    """A TMDB list entry, keyed by TMDB id"""
    id: int
    title: str
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    release_date: Optional[str] = None
    vote_average: Optional[float] = None
    vote_count: Optional[int] = None
    popularity: Optional[float] = None
    genre_ids: List[int] = []


class GroupRecommendationStatsResponse(CamelModel):
    group_id: int
    group_name: str
    total_movies_watched: int
    average_group_rating: Optional[float] = None
    top_genres: Dict[str, int] = {}
    preferred_genres: List[str] = []
    recommendations: List[RecommendedMovieResponse] = []
