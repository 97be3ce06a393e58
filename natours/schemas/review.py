"""Pydantic models for reviews."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    """Body of POST /api/v1/reviews. The author comes from the bearer token."""

    review: str = Field(min_length=1, max_length=1000)
    rating: int = Field(ge=1, le=5)
    tour: uuid.UUID


class Review(ReviewCreate):
    id: uuid.UUID
    user: str
    created_at: datetime
