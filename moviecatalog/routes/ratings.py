"""
Rating Routes - API endpoints for movie rating system
"""

from fastapi import APIRouter, Depends, status, Path
from sqlalchemy.orm import Session
from typing import List

from moviecatalog.database import get_db
from moviecatalog.utils.dependencies import get_current_user_id
from moviecatalog.schemas.rating import (
    RatingCreate,
    RatingResponse,
    RatingWithMovieResponse,
    MovieRatingsResponse,
    UserRatingForMovie,
)
from moviecatalog.services.rating_service import RatingService

router = APIRouter(prefix="/api", tags=["Ratings"])


@router.post("/movies/{movie_id}/ratings", response_model=RatingResponse, status_code=status.HTTP_201_CREATED)
def rate_movie(
    rating_data: RatingCreate,
    movie_id: int = Path(..., gt=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Rate a movie (0-10, one decimal place)

    If user has already rated this movie, the rating will be updated.
    """
    return RatingService.rate_movie(db, user_id, movie_id, rating_data.rating)


@router.get("/movies/{movie_id}/ratings", response_model=MovieRatingsResponse)
def get_movie_ratings(movie_id: int = Path(..., gt=0), db: Session = Depends(get_db)):
    """All ratings for a movie with count and average. Always read fresh."""
    return RatingService.get_movie_ratings(db, movie_id)


@router.get("/movies/{movie_id}/ratings/me", response_model=UserRatingForMovie)
def get_my_rating(
    movie_id: int = Path(..., gt=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Current user's rating for a movie; null values if not rated yet"""
    rating = RatingService.get_user_rating(db, user_id, movie_id)

    if rating:
        return {"rating": rating.rating, "rating_id": rating.id}

    return {"rating": None, "rating_id": None}


@router.delete("/movies/{movie_id}/ratings", status_code=status.HTTP_204_NO_CONTENT)
def delete_my_rating(
    movie_id: int = Path(..., gt=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    RatingService.delete_rating(db, user_id, movie_id)
    return None


@router.get("/ratings/me", response_model=List[RatingWithMovieResponse])
def get_my_ratings(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """All ratings by current user, most recent first"""
    return RatingService.get_user_ratings(db, user_id)
