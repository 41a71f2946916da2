from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from watchlog.db import Base

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    is_premium = Column(Boolean, default=False, nullable=False)

    # Deactivation (soft lockout, reversible)
    is_deactivated = Column(Boolean, default=False, nullable=False)
    deactivated_at = Column(DateTime(timezone=True), nullable=True)

    # Privacy defaults applied when other group members view this user's watches
    share_watches = Column(Boolean, default=True, nullable=False)
    share_ratings = Column(Boolean, default=True, nullable=False)
    share_notes = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    watches = relationship("Watch", back_populates="user", cascade="all, delete-orphan")
    memberships = relationship("GroupMember", back_populates="user", cascade="all, delete-orphan")
