from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from adagent.db.enums import CampaignStatusEnum, LaunchStateEnum


class CampaignCreate(BaseModel):
    name: str = Field(min_length=1)
    objective: Optional[str] = None
    goal: Optional[str] = None
    daily_budget: Optional[Decimal] = None
    currency: Optional[str] = None
    description: Optional[str] = None


class CampaignOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str
    objective: Optional[str] = None
    goal: Optional[str] = None
    daily_budget: Optional[Decimal] = None
    currency: Optional[str] = None
    description: Optional[str] = None
    status: CampaignStatusEnum
    launch_state: LaunchStateEnum
    meta_campaign_id: Optional[str] = None
    meta_adset_id: Optional[str] = None
    meta_creative_id: Optional[str] = None
    meta_ad_id: Optional[str] = None
    created_at: datetime


class CampaignAssetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    campaign_id: Optional[str] = None
    file_name: str
    file_type: str
    file_size: int
    storage_path: str
    public_url: str
    uploaded_at: datetime
