from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from app.schemas.common import ApiModel


class SiteCreate(ApiModel):
    name: str = Field(min_length=1, max_length=200)
    address: Optional[str] = None
    is_active: bool = True


class SiteUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    address: Optional[str] = None
    is_active: Optional[bool] = None


class SiteOut(ApiModel):
    site_id: UUID
    name: str
    address: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
