"""
Catalog Store - relational access to movies and genres
Filtering, sorting and pagination are pushed down into SQL.
"""

from sqlalchemy.orm import Session, selectinload
from typing import List, Optional, Tuple
import logging

from moviecatalog.models.movie import Movie
from moviecatalog.models.genre import Genre
from moviecatalog.schemas.movie import MovieQuery, SortField, SortOrder

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    SortField.TITLE: Movie.title,
    SortField.RELEASE_DATE: Movie.release_date,
    SortField.VOTE_AVERAGE: Movie.vote_average,
    SortField.POPULARITY: Movie.popularity,
}


class CatalogStore:
    """Persistence operations for catalog data (movies, genres, their association)"""

    @staticmethod
    def _with_associations(query):
        """Load genres and ratings alongside movies (one extra SELECT each)"""
        return query.options(
            selectinload(Movie.genres),
            selectinload(Movie.ratings),
        )

    @staticmethod
    def find_movies(db: Session, params: MovieQuery) -> Tuple[List[Movie], int]:
        """
        Return one page of movies matching the filter and the total match count.
        Movies are loaded with genres and ratings.
        """
        query = db.query(Movie)

        if params.search:
            query = query.filter(Movie.title.ilike(f"%{params.search}%"))

        if params.genre_ids:
            # EXISTS subquery keeps one row per movie, so count and offset stay exact
            query = query.filter(Movie.genres.any(Genre.id.in_(params.genre_ids)))

        total = query.count()

        column = SORT_COLUMNS[SortField(params.sort_by)]
        if SortOrder(params.sort_order) == SortOrder.ASC:
            ordering = [column.asc(), Movie.id.asc()]
        else:
            ordering = [column.desc(), Movie.id.desc()]

        movies = CatalogStore._with_associations(query).order_by(
            *ordering
        ).offset(params.offset).limit(params.limit).all()

        return movies, total

    @staticmethod
    def get_movie(db: Session, movie_id: int, with_associations: bool = True) -> Optional[Movie]:
        """Single movie lookup; with_associations=False skips loading genres/ratings"""
        query = db.query(Movie).filter(Movie.id == movie_id)
        if with_associations:
            query = CatalogStore._with_associations(query)
        return query.first()

    @staticmethod
    def find_genres(db: Session, genre_ids: List[int]) -> List[Genre]:
        """Resolve genre IDs; IDs without a genre row are silently dropped"""
        if not genre_ids:
            return []
        genres = db.query(Genre).filter(Genre.id.in_(genre_ids)).all()
        if len(genres) != len(set(genre_ids)):
            found = {g.id for g in genres}
            logger.debug(f"Ignoring unknown genre IDs: {sorted(set(genre_ids) - found)}")
        return genres

    @staticmethod
    def list_genres(db: Session) -> List[Genre]:
        return db.query(Genre).order_by(Genre.name.asc()).all()

    @staticmethod
    def save(db: Session, movie: Movie) -> Movie:
        db.add(movie)
        db.commit()
        db.refresh(movie)
        return movie

    @staticmethod
    def delete(db: Session, movie: Movie) -> None:
        db.delete(movie)
        db.commit()
