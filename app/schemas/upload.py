from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UploadRead(BaseModel):
    """Response for POST /upload. `filePath` is the public path the file is served from."""
    id: UUID
    file_path: str = Field(alias="filePath")
    original_name: str = Field(alias="originalName")
    size_bytes: int = Field(alias="sizeBytes")

    model_config = ConfigDict(populate_by_name=True)
