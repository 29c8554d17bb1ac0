import uuid
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Uuid, func
from sqlalchemy.orm import relationship

from app.db.base import Base


class UploadedFile(Base):
    __tablename__ = "uploaded_files"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    original_name = Column(String, nullable=False)
    stored_name = Column(String, unique=True, nullable=False)
    storage_path = Column(String, nullable=False)  # public path, e.g. /uploads/1700000000000-1a2b3c4d-roads.geojson
    content_type = Column(String, nullable=True)
    size_bytes = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="uploads")
