from sqlalchemy import Column, Integer, String, Float, Boolean, Date, DateTime, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from moviecatalog.database import Base
from moviecatalog.models.genre import movie_genres
from moviecatalog.utils.aggregates import mean_rating


class Movie(Base):
    """
    Catalog movie. The primary key is the external (TMDB) movie ID,
    assigned by the caller rather than generated locally.
    """
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, autoincrement=False)
    title = Column(String(500), nullable=False, index=True)
    overview = Column(Text)
    poster_path = Column(String(200))
    backdrop_path = Column(String(200))
    release_date = Column(Date, index=True)
    vote_average = Column(Float, default=0.0)
    vote_count = Column(Integer, default=0)
    popularity = Column(Float, default=0.0, index=True)
    adult = Column(Boolean, default=False)
    original_language = Column(String(10))
    original_title = Column(String(500))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    genres = relationship("Genre", secondary=movie_genres, back_populates="movies", order_by="Genre.name")
    ratings = relationship("Rating", back_populates="movie", cascade="all, delete-orphan")
    watchlist_entries = relationship("Watchlist", back_populates="movie", cascade="all, delete-orphan")

    @property
    def average_rating(self) -> float:
        """Mean of the user ratings, computed on read (not persisted)"""
        return mean_rating(self.ratings)

    def __repr__(self):
        return f"<Movie(id={self.id}, title='{self.title}')>"
