"""
Rating Schemas - Pydantic models for rating request/response validation
"""

from pydantic import BaseModel, Field, field_validator, ConfigDict
from datetime import datetime
from typing import Optional, List

from moviecatalog.schemas.movie import MovieResponse
from moviecatalog.utils.aggregates import round_rating


class RatingCreate(BaseModel):
    """Schema for creating/updating a rating"""
    rating: float = Field(..., description="Rating value (0-10)", ge=0.0, le=10.0)

    @field_validator('rating')
    @classmethod
    def round_to_one_decimal(cls, v):
        return round_rating(v)


class RatingResponse(BaseModel):
    """Schema for rating response (matches database model)"""
    id: str
    user_id: str
    movie_id: int
    rating: float
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RatingWithMovieResponse(RatingResponse):
    """Rating with the rated movie included"""
    movie: MovieResponse


class MovieRatingsResponse(BaseModel):
    """All ratings of a movie with their aggregate"""
    movie_id: int
    average_rating: float = Field(..., description="Mean user rating, one decimal place")
    total_ratings: int
    ratings: List[RatingResponse]

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "movie_id": 550,
            "average_rating": 8.2,
            "total_ratings": 2,
            "ratings": []
        }
    })


class UserRatingForMovie(BaseModel):
    """
    Schema for checking if user has rated a specific movie
    Returns rating value or None
    """
    rating: Optional[float] = Field(None, description="User's rating (0-10) or None if not rated")
    rating_id: Optional[str] = Field(None, description="Rating ID if exists")
