"""
Import all models to ensure they are registered with SQLAlchemy
"""
from moviecatalog.models.user import User
from moviecatalog.models.genre import Genre, movie_genres
from moviecatalog.models.movie import Movie
from moviecatalog.models.rating import Rating
from moviecatalog.models.watchlist import Watchlist

__all__ = [
    "User",
    "Genre",
    "movie_genres",
    "Movie",
    "Rating",
    "Watchlist",
]
