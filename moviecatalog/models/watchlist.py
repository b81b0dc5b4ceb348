import uuid

from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from moviecatalog.database import Base
from moviecatalog.utils.aggregates import utcnow


class Watchlist(Base):
    """
    Watchlist model - Movies saved by users to watch later,
    optionally flagged as favorites
    """
    __tablename__ = "watchlist"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    movie_id = Column(Integer, ForeignKey("movies.id", ondelete="CASCADE"), nullable=False, index=True)
    is_favorite = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="watchlist_items")
    movie = relationship("Movie", back_populates="watchlist_entries")

    # Ensure one entry per user per movie
    __table_args__ = (
        UniqueConstraint("user_id", "movie_id", name="unique_user_movie_watchlist"),
    )

    def __repr__(self):
        return f"<Watchlist(user_id={self.user_id}, movie_id={self.movie_id}, is_favorite={self.is_favorite})>"
