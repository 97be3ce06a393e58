"""
Natours Backend — Tour Service
================================

What:  In-memory tour catalogue backing the /api/v1/tours router.
How:   Tours live in a dict keyed by UUID. Seed tours get deterministic
       ids (uuid5 of their name) so links to them survive restarts.
       Errors are raised as structured failures and left to propagate;
       the service never builds HTTP responses.

Filtering (GET /api/v1/tours):
    Only the filterable fields are honoured. A single value means equality,
    a list value (allow-listed repeated parameter) means "any of":
        ?difficulty=easy                → difficulty == "easy"
        ?price=397&price=497            → price in {397, 497}
    ?sort=price,-ratingsAverage sorts ascending by price, then descending
    by rating.
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from natours.exceptions import NotFoundError, ValidationError
from natours.schemas.tour import Tour, TourCreate

logger = logging.getLogger(__name__)

FILTER_FIELDS = (
    "duration",
    "ratingsAverage",
    "ratingsQuantity",
    "maxGroupSize",
    "difficulty",
    "price",
)
SORT_FIELDS = FILTER_FIELDS + ("name",)

SEED_TOURS: List[Dict[str, Any]] = [
    {
        "name": "The Forest Hiker",
        "duration": 5,
        "maxGroupSize": 25,
        "difficulty": "easy",
        "price": 397,
        "ratingsAverage": 4.7,
        "ratingsQuantity": 37,
        "summary": "Breathtaking hike through the Canadian Banff National Park",
    },
    {
        "name": "The Sea Explorer",
        "duration": 7,
        "maxGroupSize": 15,
        "difficulty": "medium",
        "price": 497,
        "ratingsAverage": 4.8,
        "ratingsQuantity": 23,
        "summary": "Exploring the jaw-dropping US east coast by foot and by boat",
    },
    {
        "name": "The Snow Adventurer",
        "duration": 4,
        "maxGroupSize": 10,
        "difficulty": "difficult",
        "price": 997,
        "ratingsAverage": 4.5,
        "ratingsQuantity": 13,
        "summary": "Exciting adventure in the snow with snowboarding and skiing",
    },
]


def seed_tour_id(name: str) -> uuid.UUID:
    return uuid.uuid5(uuid.NAMESPACE_URL, f"natours:tour:{name}")


def _matches(actual: Any, wanted: str) -> bool:
    if isinstance(actual, (int, float)):
        try:
            return float(wanted) == float(actual)
        except ValueError:
            return False
    return str(actual) == wanted


class TourService:
    def __init__(self, seed: Iterable[Mapping[str, Any]] = SEED_TOURS):
        self._tours: Dict[uuid.UUID, Tour] = {}
        for raw in seed:
            data = TourCreate.model_validate(raw)
            self._tours[seed_tour_id(data.name)] = Tour(id=seed_tour_id(data.name), **data.model_dump())

    def list_tours(
        self,
        filters: Mapping[str, Union[str, List[str]]],
        sort: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        tours = [tour.model_dump(by_alias=True, mode="json") for tour in self._tours.values()]

        for field in FILTER_FIELDS:
            if field not in filters:
                continue
            wanted = filters[field]
            values = wanted if isinstance(wanted, list) else [wanted]
            tours = [t for t in tours if any(_matches(t[field], v) for v in values)]

        if sort:
            for key in reversed([part.strip() for part in sort.split(",") if part.strip()]):
                descending = key.startswith("-")
                field = key.lstrip("-")
                if field not in SORT_FIELDS:
                    raise ValidationError(f"Cannot sort by '{field}'", field="sort")
                tours.sort(key=lambda t: t[field], reverse=descending)

        return tours

    def get_tour(self, tour_id: uuid.UUID) -> Dict[str, Any]:
        tour = self._tours.get(tour_id)
        if tour is None:
            raise NotFoundError(resource="tour", resource_id=str(tour_id))
        return tour.model_dump(by_alias=True, mode="json")

    def create_tour(self, data: TourCreate) -> Dict[str, Any]:
        if any(t.name.lower() == data.name.lower() for t in self._tours.values()):
            raise ValidationError(f"A tour named '{data.name}' already exists", field="name")
        tour = Tour(id=uuid.uuid4(), **data.model_dump())
        self._tours[tour.id] = tour
        logger.info("Created tour %s (%s)", tour.name, tour.id)
        return tour.model_dump(by_alias=True, mode="json")
