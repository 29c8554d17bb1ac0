"""Schemas and payload validation for the map endpoints."""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.core.errors import CoordinateValidationError
from app.core.geo import GeoPoint

WRONG_COUNT_MESSAGE = "Two coordinates are required."

# strict: reject strings and bools instead of coercing them to floats
Latitude = Annotated[float, Field(strict=True, ge=-90, le=90, allow_inf_nan=False)]
Longitude = Annotated[float, Field(strict=True, ge=-180, le=180, allow_inf_nan=False)]


class Coordinate(BaseModel):
    """A point as sent by clients: {"lat": ..., "lng": ...}."""
    lat: Latitude
    lng: Longitude

    model_config = ConfigDict(extra="ignore")

    def to_point(self) -> GeoPoint:
        return GeoPoint(latitude=self.lat, longitude=self.lng)


class DistanceResponse(BaseModel):
    distance: float


def _describe(index: int, error: dict) -> str:
    loc = [str(part) for part in error.get("loc", ()) if part != "__root__"]
    field = loc[0] if loc else "point"
    if error.get("type") == "missing":
        return f"Coordinate {index}: '{field}' is required."
    if error.get("type") == "model_type":
        return f"Coordinate {index}: expected an object with 'lat' and 'lng'."
    return f"Coordinate {index}: '{field}' {error.get('msg', 'is invalid').lower()}."


def parse_distance_request(payload: Any) -> tuple[GeoPoint, GeoPoint]:
    """
    Validate a raw distance request body and return the two points.

    Raises:
        CoordinateValidationError: if `coordinates` is not a list of exactly two
            points, or a point has a missing, non-numeric, non-finite or
            out-of-range lat/lng.
    """
    coordinates = payload.get("coordinates") if isinstance(payload, dict) else None
    if not isinstance(coordinates, list) or len(coordinates) != 2:
        raise CoordinateValidationError(WRONG_COUNT_MESSAGE)

    points = []
    for index, raw in enumerate(coordinates):
        try:
            points.append(Coordinate.model_validate(raw).to_point())
        except ValidationError as e:
            raise CoordinateValidationError(_describe(index, e.errors()[0])) from e
    return points[0], points[1]
