from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class MetaConnectionLinkRequest(BaseModel):
    access_token: str = Field(min_length=1)
    ad_account_id: Optional[str] = None
    pixel_id: Optional[str] = None
    catalog_id: Optional[str] = None
    catalog_name: Optional[str] = None
    page_id: Optional[str] = None
    page_name: Optional[str] = None


class MetaSelectionsUpdateRequest(BaseModel):
    ad_account_id: Optional[str] = None
    pixel_id: Optional[str] = None
    catalog_id: Optional[str] = None
    catalog_name: Optional[str] = None
    page_id: Optional[str] = None
    page_name: Optional[str] = None


class MetaConnectionOut(BaseModel):
    user_id: str
    ad_account_id: Optional[str] = None
    pixel_id: Optional[str] = None
    catalog_id: Optional[str] = None
    catalog_name: Optional[str] = None
    page_id: Optional[str] = None
    page_name: Optional[str] = None
    is_connected: bool
    # The token itself never leaves the backend.
    has_access_token: bool
    updated_at: Optional[datetime] = None
