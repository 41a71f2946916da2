from sqlalchemy import Column, Integer, String, Float, Text, DateTime, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from watchlog.db import Base

class Movie(Base):
    __tablename__ = "movies"
    id = Column(Integer, primary_key=True, index=True)
    tmdb_id = Column(Integer, unique=True, index=True, nullable=False)
    title = Column(String, index=True, nullable=False)
    year = Column(Integer, nullable=True)
    poster_path = Column(String, nullable=True)
    backdrop_path = Column(String, nullable=True)
    synopsis = Column(Text, nullable=True)
    tagline = Column(String, nullable=True)
    runtime = Column(Integer, nullable=True)  # minutes

    # Enriched metadata, stored once at import time
    genres = Column(JSON, default=list)
    director_name = Column(String, nullable=True)
    tmdb_rating = Column(Float, nullable=True)
    tmdb_vote_count = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    watches = relationship("Watch", back_populates="movie")
