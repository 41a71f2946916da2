from datetime import datetime
from typing import List

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from watchlog.db import Base


class Watch(Base):
    __tablename__ = "watches"
    __table_args__ = (
        Index("ix_watches_user_watched_date", "user_id", "watched_date"),
        Index("ix_watches_user_movie", "user_id", "movie_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    movie_id = Column(Integer, ForeignKey("movies.id"), nullable=False)
    watched_date = Column(DateTime, nullable=False)  # naive UTC
    rating = Column(Integer, nullable=True)  # 1-10
    notes = Column(Text, nullable=True)
    watch_location = Column(String, nullable=True)
    watched_with = Column(String, nullable=True)
    is_rewatch = Column(Boolean, default=False, nullable=False)
    is_private = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="watches")
    movie = relationship("Movie", back_populates="watches")
    shares = relationship("WatchShare", back_populates="watch", cascade="all, delete-orphan")

    @property
    def group_ids(self) -> List[int]:
        return sorted(s.group_id for s in self.shares)


class WatchShare(Base):
    """A watch made visible to one group at the moment it was saved."""
    __tablename__ = "watch_shares"

    watch_id = Column(Integer, ForeignKey("watches.id"), primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.id"), primary_key=True, index=True)
    shared_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    watch = relationship("Watch", back_populates="shares")
    group = relationship("Group", back_populates="shares")
