from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from typing import Optional

from moviecatalog.database import get_db
from moviecatalog.schemas.movie import (
    MovieQuery,
    MovieCreate,
    MovieUpdate,
    MovieDetailResponse,
    MovieListResponse,
    GenreListResponse,
    SortField,
    SortOrder,
)
from moviecatalog.services.movie_service import MovieService

router = APIRouter(prefix="/api/movies", tags=["Movies"])


# ============================================
# Listing & Genres
# ============================================

@router.get("", response_model=MovieListResponse)
def list_movies(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, description="Items per page"),
    search: Optional[str] = Query(None, min_length=1, max_length=200, description="Title search"),
    genres: Optional[str] = Query(None, description="Genre IDs (comma-separated)", examples=["28,12"]),
    sort_by: SortField = Query(SortField.POPULARITY, description="Sort field"),
    sort_order: SortOrder = Query(SortOrder.DESC, description="Sort direction"),
    db: Session = Depends(get_db)
):
    """
    Paginated movie listing

    - **search**: case-insensitive title substring
    - **genres**: movies having at least one of these genres
    - **sort_by**: title, release_date, vote_average or popularity

    Cached for 5 minutes per distinct filter.
    """
    params = MovieQuery(
        page=page,
        limit=limit,
        search=search,
        genre_ids=genres,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return MovieService.list_movies(db, params)


@router.get("/genres", response_model=GenreListResponse)
def get_genres(db: Session = Depends(get_db)):
    """Get list of all genres ordered by name"""
    return {"genres": MovieService.list_genres(db)}


# ============================================
# Movie CRUD (dynamic routes last)
# ============================================

@router.post("", response_model=MovieDetailResponse, status_code=status.HTTP_201_CREATED)
def create_movie(movie_data: MovieCreate, db: Session = Depends(get_db)):
    """Create a movie; unknown genre IDs are ignored"""
    return MovieService.create_movie(db, movie_data)


@router.get("/{movie_id}", response_model=MovieDetailResponse)
def get_movie(movie_id: int = Path(..., gt=0), db: Session = Depends(get_db)):
    """Movie detail with genres and ratings (cached for 10 minutes)"""
    return MovieService.get_movie(db, movie_id)


@router.patch("/{movie_id}", response_model=MovieDetailResponse)
def update_movie(
    update_data: MovieUpdate,
    movie_id: int = Path(..., gt=0),
    db: Session = Depends(get_db)
):
    """Partially update a movie; a non-empty genre_ids replaces its genres"""
    return MovieService.update_movie(db, movie_id, update_data)


@router.delete("/{movie_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_movie(movie_id: int = Path(..., gt=0), db: Session = Depends(get_db)):
    """Delete a movie with its ratings and watchlist entries"""
    MovieService.delete_movie(db, movie_id)
    return None
