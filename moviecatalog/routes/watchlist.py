from fastapi import APIRouter, Depends, status, Path
from sqlalchemy.orm import Session
from typing import List, Optional

from moviecatalog.database import get_db
from moviecatalog.utils.dependencies import get_current_user_id
from moviecatalog.schemas.watchlist import WatchlistAdd, WatchlistResponse, WatchlistCheck
from moviecatalog.services.watchlist_service import WatchlistService

router = APIRouter(prefix="/api/watchlist", tags=["Watchlist"])


@router.get("", response_model=List[WatchlistResponse])
def get_watchlist(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get user's watchlist, newest first"""
    return WatchlistService.get_watchlist(db, user_id)


@router.get("/favorites", response_model=List[WatchlistResponse])
def get_favorites(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    return WatchlistService.get_favorites(db, user_id)


@router.post("/{movie_id}", response_model=WatchlistResponse, status_code=status.HTTP_201_CREATED)
def add_to_watchlist(
    watchlist_data: Optional[WatchlistAdd] = None,
    movie_id: int = Path(..., gt=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """
    Add a movie to user's watchlist

    - **is_favorite**: mark as favorite right away (optional)

    Returns 409 if the movie is already in the watchlist.
    """
    is_favorite = watchlist_data.is_favorite if watchlist_data else False
    return WatchlistService.add_to_watchlist(db, user_id, movie_id, is_favorite)


@router.get("/{movie_id}/check", response_model=WatchlistCheck)
def check_in_watchlist(
    movie_id: int = Path(..., gt=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Check if a movie is in user's watchlist"""
    return {
        "movie_id": movie_id,
        "in_watchlist": WatchlistService.check_in_watchlist(db, user_id, movie_id),
    }


@router.patch("/{movie_id}/favorite", response_model=WatchlistResponse)
def toggle_favorite(
    movie_id: int = Path(..., gt=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Toggle the favorite flag of a watchlist entry"""
    return WatchlistService.toggle_favorite(db, user_id, movie_id)


@router.delete("/{movie_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_from_watchlist(
    movie_id: int = Path(..., gt=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    WatchlistService.remove_from_watchlist(db, user_id, movie_id)
    return None
