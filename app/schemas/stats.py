from __future__ import annotations

from pydantic import BaseModel


class AdminStats(BaseModel):
    total_users: int = 0
    total_movies: int = 0
    total_reviews: int = 0
    total_genres: int = 0
    average_movie_rating: float = 0.0
    new_users_last_7_days: int = 0
    new_reviews_last_7_days: int = 0
    new_movies_last_7_days: int = 0
