from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime

from moviecatalog.schemas.movie import MovieResponse


class WatchlistAdd(BaseModel):
    """Schema for adding a movie to watchlist"""
    is_favorite: bool = Field(False, description="Mark as favorite right away")


class WatchlistResponse(BaseModel):
    """Schema for watchlist item response"""
    id: str
    user_id: str
    movie_id: int
    is_favorite: bool
    created_at: datetime
    movie: MovieResponse

    model_config = ConfigDict(from_attributes=True)


class WatchlistCheck(BaseModel):
    movie_id: int
    in_watchlist: bool
