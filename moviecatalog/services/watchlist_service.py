from sqlalchemy.orm import Session, joinedload, selectinload
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
import logging

from moviecatalog.exceptions import NotFoundError, ConflictError
from moviecatalog.models.watchlist import Watchlist
from moviecatalog.models.movie import Movie
from moviecatalog.models.user import User

logger = logging.getLogger(__name__)


class WatchlistService:
    """Service for watchlist operations"""

    @staticmethod
    def _find_entry(db: Session, user_id: str, movie_id: int) -> Optional[Watchlist]:
        return db.query(Watchlist).filter(
            Watchlist.user_id == user_id,
            Watchlist.movie_id == movie_id
        ).first()

    @staticmethod
    def _load_entry(db: Session, entry_id: str) -> Watchlist:
        """Reload an entry with its movie, genres and ratings for the response"""
        return db.query(Watchlist).options(
            joinedload(Watchlist.movie).selectinload(Movie.genres),
            joinedload(Watchlist.movie).selectinload(Movie.ratings),
        ).filter(Watchlist.id == entry_id).first()

    @staticmethod
    def add_to_watchlist(db: Session, user_id: str, movie_id: int, is_favorite: bool = False) -> Watchlist:
        """
        Add a movie to user's watchlist

        Raises:
            NotFoundError: If the movie or user does not exist
            ConflictError: If the movie is already in the watchlist
        """
        if not db.get(Movie, movie_id):
            raise NotFoundError(f"Movie with ID {movie_id} not found")
        if not db.get(User, user_id):
            raise NotFoundError(f"User with ID {user_id} not found")

        if WatchlistService._find_entry(db, user_id, movie_id):
            raise ConflictError("Movie is already in your watchlist")

        item = Watchlist(user_id=user_id, movie_id=movie_id, is_favorite=is_favorite)
        db.add(item)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent request added the same pair first
            db.rollback()
            raise ConflictError("Movie is already in your watchlist")

        logger.info(f"User {user_id} added movie {movie_id} to watchlist")
        return WatchlistService._load_entry(db, item.id)

    @staticmethod
    def get_watchlist(db: Session, user_id: str, favorites_only: bool = False) -> List[Watchlist]:
        """User's watchlist, newest first, each entry with its movie and genres"""
        query = db.query(Watchlist).options(
            joinedload(Watchlist.movie).selectinload(Movie.genres),
            joinedload(Watchlist.movie).selectinload(Movie.ratings),
        ).filter(Watchlist.user_id == user_id)

        if favorites_only:
            query = query.filter(Watchlist.is_favorite.is_(True))

        return query.order_by(Watchlist.created_at.desc()).all()

    @staticmethod
    def get_favorites(db: Session, user_id: str) -> List[Watchlist]:
        return WatchlistService.get_watchlist(db, user_id, favorites_only=True)

    @staticmethod
    def remove_from_watchlist(db: Session, user_id: str, movie_id: int) -> None:
        """Remove a movie from watchlist"""
        item = WatchlistService._find_entry(db, user_id, movie_id)
        if not item:
            raise NotFoundError("Movie not found in your watchlist")

        db.delete(item)
        db.commit()
        logger.info(f"User {user_id} removed movie {movie_id} from watchlist")

    @staticmethod
    def toggle_favorite(db: Session, user_id: str, movie_id: int) -> Watchlist:
        """Flip the favorite flag of a watchlist entry"""
        item = WatchlistService._find_entry(db, user_id, movie_id)
        if not item:
            raise NotFoundError("Movie not found in your watchlist")

        item.is_favorite = not item.is_favorite
        db.commit()

        logger.info(
            f"User {user_id} {'marked' if item.is_favorite else 'unmarked'} movie {movie_id} as favorite"
        )
        return WatchlistService._load_entry(db, item.id)

    @staticmethod
    def check_in_watchlist(db: Session, user_id: str, movie_id: int) -> bool:
        """Check if a movie is in user's watchlist"""
        return WatchlistService._find_entry(db, user_id, movie_id) is not None
