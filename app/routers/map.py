import logging
from typing import Any

from fastapi import APIRouter, Body

from app.core.config import settings
from app.core.geo import haversine_distance
from app.schemas.map import DistanceResponse, parse_distance_request

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/map", tags=["map"])


@router.post(
    "/distance",
    response_model=DistanceResponse,
    responses={400: {"description": "Invalid coordinates", "content": {"application/json": {"example": {"error": "Two coordinates are required."}}}}},
)
def calculate_distance(payload: Any = Body(default=None)) -> DistanceResponse:
    """
    Great-circle distance between two coordinates.

    Body: {"coordinates": [{"lat": 51.5, "lng": 0.12}, {"lat": 40.69, "lng": -74.04}]}
    Distance is reported in settings.distance_units (kilometers by default).
    """
    start, end = parse_distance_request(payload)
    distance = haversine_distance(start, end, units=settings.distance_units)
    logger.debug(f"distance {start} -> {end} = {distance:.3f} {settings.distance_units}")
    return DistanceResponse(distance=distance)
