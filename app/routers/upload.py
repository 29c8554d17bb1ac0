"""Map file upload (GeoJSON, KML, TIFF). Files are stored as opaque blobs."""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.core.auth import get_current_user_optional
from app.core.config import settings
from app.db.session import get_db
from app.models.uploaded_file import UploadedFile
from app.models.user import User
from app.schemas.upload import UploadRead
from app.services.blob_store import BlobNotFoundError, LocalBlobStore, uploads_prefix

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/upload", tags=["upload"])


def get_blob_store() -> LocalBlobStore:
    return LocalBlobStore(settings.upload_dir, public_prefix=uploads_prefix(settings.api_prefix))


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def _extension_allowed(filename: str) -> bool:
    allowed = {ext.lower() for ext in settings.upload_allowed_extensions}
    if not allowed:
        return True
    return Path(filename).suffix.lower() in allowed


@router.post(
    "",
    response_model=UploadRead,
    responses={
        400: {"description": "No file uploaded / unsupported file type"},
        413: {"description": "File too large"},
    },
)
async def upload_file(
    file: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    store: LocalBlobStore = Depends(get_blob_store),
    current_user: User | None = Depends(get_current_user_optional),
):
    """
    Store a single uploaded file (multipart field "file").
    Returns {"filePath": "<API_PREFIX>/uploads/<stored name>"}; the file is then served from that path.
    When called with a valid bearer token of a known user, the upload is linked to that user.
    """
    if file is None or not file.filename:
        return _message(400, "No file uploaded")
    if not _extension_allowed(file.filename):
        logger.info(f"Rejected upload {file.filename!r}: extension not allowed")
        return _message(400, "Unsupported file type")

    # Read at most one byte past the cap so oversized uploads are never buffered whole
    data = await file.read(settings.upload_max_bytes + 1)
    if len(data) > settings.upload_max_bytes:
        logger.info(f"Rejected upload {file.filename!r}: exceeds {settings.upload_max_bytes} bytes")
        return _message(413, "File too large")

    blob = store.store(data, file.filename)
    record = UploadedFile(
        user_id=current_user.id if current_user else None,
        original_name=blob.original_name,
        stored_name=blob.stored_name,
        storage_path=blob.storage_path,
        content_type=file.content_type,
        size_bytes=blob.size_bytes,
    )
    db.add(record)
    try:
        db.commit()
    except Exception:
        db.rollback()
        try:
            store.delete(blob.storage_path)
        except BlobNotFoundError:
            logger.warning(f"Could not remove {blob.storage_path} after failed commit")
        raise
    db.refresh(record)

    return UploadRead(
        id=record.id,
        file_path=record.storage_path,
        original_name=record.original_name,
        size_bytes=record.size_bytes,
    )
