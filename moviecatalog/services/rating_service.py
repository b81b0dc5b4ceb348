"""
Rating Service - Handle all rating-related business logic

One rating per (user, movie), enforced by the unique_user_movie_rating
constraint. Rating a movie twice updates the existing row in place.

Rating changes do not touch the cached movie detail; its average_rating
may lag for up to the detail TTL. get_movie_ratings always reads the store.
"""

from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from typing import Dict, List, Optional
import logging

from moviecatalog.exceptions import NotFoundError, ConflictError
from moviecatalog.models.rating import Rating
from moviecatalog.models.movie import Movie
from moviecatalog.models.user import User
from moviecatalog.utils.aggregates import mean_rating, round_rating

logger = logging.getLogger(__name__)


class RatingService:
    """Service for movie rating operations"""

    @staticmethod
    def _ensure_movie_and_user(db: Session, user_id: str, movie_id: int) -> None:
        if not db.get(Movie, movie_id):
            raise NotFoundError(f"Movie with ID {movie_id} not found")
        if not db.get(User, user_id):
            raise NotFoundError(f"User with ID {user_id} not found")

    @staticmethod
    def _find_rating(db: Session, user_id: str, movie_id: int) -> Optional[Rating]:
        return db.query(Rating).filter(
            Rating.user_id == user_id,
            Rating.movie_id == movie_id
        ).first()

    @staticmethod
    def rate_movie(db: Session, user_id: str, movie_id: int, value: float) -> Rating:
        """
        Add a new rating or update the existing one

        If a concurrent request inserted the same (user, movie) pair between
        the lookup and our insert, the unique constraint rejects the insert;
        the transaction is rolled back and retried once as an update.

        Args:
            db: Database session
            user_id: User ID
            movie_id: Movie ID
            value: Rating value (0-10), stored with one decimal place

        Returns:
            Rating object

        Raises:
            NotFoundError: If the movie or user does not exist
            ConflictError: If the insert lost a race and the winning row vanished
        """
        RatingService._ensure_movie_and_user(db, user_id, movie_id)
        value = round_rating(value)

        rating = RatingService._find_rating(db, user_id, movie_id)

        if rating:
            rating.rating = value
            db.commit()
            logger.info(f"User {user_id} updated rating for movie {movie_id} to {value}")
        else:
            rating = Rating(user_id=user_id, movie_id=movie_id, rating=value)
            db.add(rating)
            try:
                db.commit()
                logger.info(f"User {user_id} created rating for movie {movie_id}: {value}")
            except IntegrityError:
                db.rollback()
                logger.warning(
                    f"Concurrent rating insert for user {user_id}, movie {movie_id}; retrying as update"
                )
                rating = RatingService._find_rating(db, user_id, movie_id)
                if not rating:
                    raise ConflictError("Rating could not be saved due to a concurrent update")
                rating.rating = value
                db.commit()

        db.refresh(rating)
        return rating

    @staticmethod
    def get_movie_ratings(db: Session, movie_id: int) -> Dict:
        """
        Get all ratings for a movie with their average

        Returns:
            Dictionary with movie_id, average_rating, total_ratings, ratings (newest first)

        Raises:
            NotFoundError: If the movie does not exist
        """
        if not db.get(Movie, movie_id):
            raise NotFoundError(f"Movie with ID {movie_id} not found")

        ratings = db.query(Rating).filter(
            Rating.movie_id == movie_id
        ).order_by(
            Rating.created_at.desc()
        ).all()

        return {
            "movie_id": movie_id,
            "average_rating": mean_rating(ratings),
            "total_ratings": len(ratings),
            "ratings": ratings,
        }

    @staticmethod
    def get_user_rating(db: Session, user_id: str, movie_id: int) -> Optional[Rating]:
        """User's rating for a movie, or None if not rated"""
        return RatingService._find_rating(db, user_id, movie_id)

    @staticmethod
    def get_user_ratings(db: Session, user_id: str) -> List[Rating]:
        """All ratings by a user, newest first, with the movie loaded"""
        return db.query(Rating).options(
            joinedload(Rating.movie).selectinload(Movie.genres),
            joinedload(Rating.movie).selectinload(Movie.ratings),
        ).filter(
            Rating.user_id == user_id
        ).order_by(
            Rating.created_at.desc()
        ).all()

    @staticmethod
    def delete_rating(db: Session, user_id: str, movie_id: int) -> None:
        """
        Delete the user's rating for a movie

        Raises:
            NotFoundError: If the user has not rated this movie
        """
        rating = RatingService._find_rating(db, user_id, movie_id)

        if not rating:
            raise NotFoundError("Rating not found")

        db.delete(rating)
        db.commit()
        logger.info(f"User {user_id} deleted rating for movie {movie_id}")
