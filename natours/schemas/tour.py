"""
Natours Backend — Tour Schemas
================================

What:  Pydantic models for tour payloads.
How:   Field aliases keep the camelCase wire names the query filters use
       (maxGroupSize, ratingsAverage, ...), while Python code uses
       snake_case attributes.
"""

import uuid
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class TourCreate(BaseModel):
    """Body of POST /api/v1/tours."""

    name: str = Field(min_length=10, max_length=40, description="Unique tour name")
    duration: int = Field(gt=0, description="Length of the tour in days")
    max_group_size: int = Field(gt=0, alias="maxGroupSize")
    difficulty: Literal["easy", "medium", "difficult"]
    price: float = Field(gt=0)
    summary: Optional[str] = Field(default=None, max_length=300)
    ratings_average: float = Field(default=4.5, ge=1, le=5, alias="ratingsAverage")
    ratings_quantity: int = Field(default=0, ge=0, alias="ratingsQuantity")

    model_config = {"populate_by_name": True}

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class Tour(TourCreate):
    id: uuid.UUID
