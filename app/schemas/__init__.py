from app.schemas.user import UserRead
from app.schemas.map import Coordinate, DistanceResponse
from app.schemas.upload import UploadRead

__all__ = [
    "UserRead",
    "Coordinate",
    "DistanceResponse",
    "UploadRead",
]
