"""In-memory review store backing the /api/v1/reviews router."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from natours.exceptions import ValidationError
from natours.schemas.review import Review, ReviewCreate
from natours.services.tour_service import TourService

logger = logging.getLogger(__name__)


class ReviewService:
    def __init__(self, tours: TourService):
        self._tours = tours
        self._reviews: List[Review] = []

    def list_reviews(self, tour_id: Optional[uuid.UUID] = None) -> List[Dict[str, Any]]:
        reviews = self._reviews
        if tour_id is not None:
            reviews = [r for r in reviews if r.tour == tour_id]
        return [r.model_dump(mode="json") for r in reviews]

    def create_review(self, data: ReviewCreate, user_id: str) -> Dict[str, Any]:
        # Raises NotFoundError for unknown tours
        self._tours.get_tour(data.tour)

        if any(r.tour == data.tour and r.user == user_id for r in self._reviews):
            raise ValidationError("You have already reviewed this tour", field="tour")

        review = Review(
            id=uuid.uuid4(),
            user=user_id,
            created_at=datetime.now(timezone.utc),
            **data.model_dump(),
        )
        self._reviews.append(review)
        logger.info("User %s reviewed tour %s", user_id, data.tour)
        return review.model_dump(mode="json")
