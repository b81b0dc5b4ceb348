"""
Movie catalog schemas
Listing filter, create/update payloads and response shapes
"""
from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional, List, Union
from datetime import date, datetime
from enum import Enum
import json


# ============================================
# Enums for type-safe filter options
# ============================================

class SortField(str, Enum):
    """Columns a movie listing can be sorted by"""
    TITLE = "title"
    RELEASE_DATE = "release_date"
    VOTE_AVERAGE = "vote_average"
    POPULARITY = "popularity"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# ============================================
# Listing Filter
# ============================================

class MovieQuery(BaseModel):
    """
    Movie listing filter: pagination, title search, genre filter and sorting.
    Its JSON dump doubles as the listing cache key.
    """
    page: int = Field(default=1, ge=1, description="Page number")
    limit: int = Field(default=20, ge=1, description="Items per page")
    search: Optional[str] = Field(
        None,
        min_length=1,
        max_length=200,
        description="Case-insensitive title substring"
    )
    genre_ids: Optional[List[int]] = Field(
        None,
        description="Genre IDs; a movie matches if it has at least one of them",
        json_schema_extra={"example": [28, 12]}
    )
    sort_by: SortField = Field(default=SortField.POPULARITY, description="Sort field")
    sort_order: SortOrder = Field(default=SortOrder.DESC, description="Sort direction")

    @field_validator('genre_ids', mode='before')
    @classmethod
    def parse_genre_ids(cls, v: Union[str, List[int], None]):
        """Accept comma-separated IDs ('28,12') as well as a list"""
        if v is None or v == "":
            return None
        if isinstance(v, str):
            try:
                v = [int(x.strip()) for x in v.split(',') if x.strip()]
            except ValueError:
                raise ValueError("Invalid genre IDs format. Use comma-separated integers")
        # Order and duplicates do not change the result set
        return sorted(set(v)) or None

    def cache_key(self, prefix: str) -> str:
        """Stable serialization of the whole filter"""
        return prefix + json.dumps(self.model_dump(mode="json"), sort_keys=True)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# ============================================
# Create / Update Payloads
# ============================================

class MovieBase(BaseModel):
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    release_date: Optional[date] = None
    vote_average: Optional[float] = Field(None, ge=0, le=10)
    vote_count: Optional[int] = Field(None, ge=0)
    popularity: Optional[float] = Field(None, ge=0)
    adult: Optional[bool] = None
    original_language: Optional[str] = Field(None, max_length=10)
    original_title: Optional[str] = None
    genre_ids: Optional[List[int]] = Field(None, description="Genre IDs; unknown IDs are ignored")


class MovieCreate(MovieBase):
    """Schema for creating a movie (ID comes from TMDB)"""
    id: int = Field(..., gt=0, description="TMDB movie ID")
    title: str = Field(..., min_length=1, max_length=500)


class MovieUpdate(MovieBase):
    """Partial update; only fields that are set are applied"""
    title: Optional[str] = Field(None, min_length=1, max_length=500)


# ============================================
# Response Schemas
# ============================================

class GenreResponse(BaseModel):
    """Response schema for a genre"""
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class MovieResponse(BaseModel):
    """Movie with genres and the computed user rating average"""
    id: int
    title: str
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    release_date: Optional[date] = None
    vote_average: Optional[float] = 0.0
    vote_count: Optional[int] = 0
    popularity: Optional[float] = 0.0
    adult: Optional[bool] = False
    original_language: Optional[str] = None
    original_title: Optional[str] = None
    genres: List[GenreResponse] = []
    average_rating: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MovieRatingEntry(BaseModel):
    id: str
    user_id: str
    rating: float
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MovieDetailResponse(MovieResponse):
    """Single movie detail, including the individual ratings"""
    ratings: List[MovieRatingEntry] = []


class MovieListResponse(BaseModel):
    """Paginated movie listing"""
    data: List[MovieResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class GenreListResponse(BaseModel):
    """Response for genres endpoint"""
    genres: List[GenreResponse]
