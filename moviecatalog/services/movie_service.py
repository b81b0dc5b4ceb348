"""
Movie Service - cache-aside reads and cache invalidation for the catalog

Read path: derive a cache key from the request, return the cached value on a
hit, otherwise query the Catalog Store and cache the serialized result.
Write path: update the store, then invalidate the affected keys.

Cached values are JSON-mode dumps of the response schemas, so a hit and a
miss return exactly the same shape.
"""

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import Dict, List
import math
import logging

from moviecatalog.exceptions import NotFoundError, ConflictError
from moviecatalog.models.movie import Movie
from moviecatalog.schemas.movie import (
    MovieQuery,
    MovieCreate,
    MovieUpdate,
    MovieResponse,
    MovieDetailResponse,
    MovieListResponse,
    GenreResponse,
)
from moviecatalog.services.catalog_store import CatalogStore
from moviecatalog.utils.cache import cache_service

logger = logging.getLogger(__name__)

# Cache TTL in seconds
CACHE_TTL_MOVIES_LIST = 300  # 5 minutes
CACHE_TTL_MOVIE_DETAIL = 600  # 10 minutes
CACHE_TTL_GENRES = 3600  # 1 hour

LISTING_KEY_PREFIX = "movie-listing:"
DETAIL_KEY_PREFIX = "movie-detail:"
GENRES_KEY = "movie-genres"


def detail_key(movie_id: int) -> str:
    return f"{DETAIL_KEY_PREFIX}{movie_id}"


class MovieService:
    """Catalog query engine: listings, detail, genres and movie mutations"""

    cache = cache_service

    # ==================== READS ====================

    @classmethod
    def list_movies(cls, db: Session, params: MovieQuery) -> Dict:
        """
        Paginated, filtered, sorted movie listing

        Returns:
            Dict with data, total, page, limit, total_pages
        """
        return cls.cache.get_or_populate(
            params.cache_key(LISTING_KEY_PREFIX),
            lambda: cls._fetch_movies(db, params),
            CACHE_TTL_MOVIES_LIST,
        )

    @staticmethod
    def _fetch_movies(db: Session, params: MovieQuery) -> Dict:
        movies, total = CatalogStore.find_movies(db, params)
        page = MovieListResponse(
            data=[MovieResponse.model_validate(m) for m in movies],
            total=total,
            page=params.page,
            limit=params.limit,
            total_pages=math.ceil(total / params.limit),
        )
        return page.model_dump(mode="json")

    @classmethod
    def get_movie(cls, db: Session, movie_id: int) -> Dict:
        """
        Movie detail with genres, ratings and average rating

        Raises:
            NotFoundError: If no movie has this ID
        """
        return cls.cache.get_or_populate(
            detail_key(movie_id),
            lambda: cls._fetch_movie(db, movie_id),
            CACHE_TTL_MOVIE_DETAIL,
        )

    @staticmethod
    def _fetch_movie(db: Session, movie_id: int) -> Dict:
        movie = CatalogStore.get_movie(db, movie_id)
        if not movie:
            raise NotFoundError(f"Movie with ID {movie_id} not found")
        return MovieDetailResponse.model_validate(movie).model_dump(mode="json")

    @classmethod
    def list_genres(cls, db: Session) -> List[Dict]:
        """All genres ordered by name. Only a full cache reset invalidates this."""
        return cls.cache.get_or_populate(
            GENRES_KEY,
            lambda: [GenreResponse.model_validate(g).model_dump(mode="json") for g in CatalogStore.list_genres(db)],
            CACHE_TTL_GENRES,
        )

    # ==================== WRITES ====================

    @classmethod
    def create_movie(cls, db: Session, movie_data: MovieCreate) -> Movie:
        """
        Persist a new movie with its genres

        Unknown genre IDs are dropped. Invalidates the listing cache space.

        Raises:
            ConflictError: If a movie with the same ID already exists
        """
        if CatalogStore.get_movie(db, movie_data.id, with_associations=False):
            raise ConflictError(f"Movie with ID {movie_data.id} already exists")

        fields = movie_data.model_dump(exclude_none=True, exclude={"genre_ids"})
        movie = Movie(**fields)
        movie.genres = CatalogStore.find_genres(db, movie_data.genre_ids or [])

        try:
            movie = CatalogStore.save(db, movie)
        except IntegrityError:
            db.rollback()
            raise ConflictError(f"Movie with ID {movie_data.id} already exists")

        logger.info(f"Created movie {movie.id} ('{movie.title}')")
        cls._invalidate_listings()
        return movie

    @classmethod
    def update_movie(cls, db: Session, movie_id: int, update_data: MovieUpdate) -> Movie:
        """
        Merge supplied fields into an existing movie

        A non-empty genre_ids replaces the genre set. Invalidates the movie's
        detail key and the listing cache space.

        Raises:
            NotFoundError: If no movie has this ID
        """
        movie = CatalogStore.get_movie(db, movie_id)
        if not movie:
            raise NotFoundError(f"Movie with ID {movie_id} not found")

        changes = update_data.model_dump(exclude_unset=True)
        genre_ids = changes.pop("genre_ids", None)
        # title is NOT NULL; an explicit null leaves it unchanged
        if changes.get("title") is None:
            changes.pop("title", None)

        if genre_ids:
            movie.genres = CatalogStore.find_genres(db, genre_ids)

        for field, value in changes.items():
            setattr(movie, field, value)

        movie = CatalogStore.save(db, movie)
        logger.info(f"Updated movie {movie_id}")

        cls.cache.delete(detail_key(movie_id))
        cls._invalidate_listings()
        return movie

    @classmethod
    def delete_movie(cls, db: Session, movie_id: int) -> None:
        """
        Delete a movie together with its ratings and watchlist entries

        Raises:
            NotFoundError: If no movie has this ID
        """
        movie = CatalogStore.get_movie(db, movie_id, with_associations=False)
        if not movie:
            raise NotFoundError(f"Movie with ID {movie_id} not found")

        CatalogStore.delete(db, movie)
        logger.info(f"Deleted movie {movie_id}")

        cls.cache.delete(detail_key(movie_id))
        cls._invalidate_listings()

    @classmethod
    def _invalidate_listings(cls) -> None:
        """
        Drop every cached listing.

        In 'reset' mode this clears the whole cache, detail and genre keys
        included; in 'prefix' mode only movie-listing:* keys go.
        """
        logger.info("Invalidating movies list cache")
        cls.cache.invalidate_space(LISTING_KEY_PREFIX)
