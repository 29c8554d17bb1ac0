from pydantic import BaseModel, ConfigDict
from uuid import UUID
from datetime import datetime
from typing import Optional


class UserRead(BaseModel):
    id: UUID
    email: Optional[str] = None
    external_auth_provider: Optional[str] = None
    external_auth_uid: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
