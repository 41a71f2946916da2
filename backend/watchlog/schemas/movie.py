from typing import Optional
from .base import CamelModel

class MovieBasicInfo(CamelModel):
    """Movie metadata embedded in watch and feed payloads"""
    id: int
    tmdb_id: int
    title: str
    year: Optional[int] = None
    poster_path: Optional[str] = None
    synopsis: Optional[str] = None
