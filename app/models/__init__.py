from app.models.user import User
from app.models.uploaded_file import UploadedFile

__all__ = [
    "User",
    "UploadedFile",
]
