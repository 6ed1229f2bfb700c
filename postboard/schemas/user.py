from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    is_verified: bool
    created_at: datetime


class AssignRoleRequest(BaseModel):
    role: str = Field(min_length=1)
