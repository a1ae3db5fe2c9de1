from __future__ import annotations

import copy
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from adagent.db.enums import AgentModeEnum

AssetType = Literal["catalog", "upload"]


class MetaConnectionData(BaseModel):
    model_config = ConfigDict(frozen=True)

    ad_account_id: Optional[str] = None
    pixel_id: Optional[str] = None
    catalog_id: Optional[str] = None
    catalog_name: Optional[str] = None
    page_id: Optional[str] = None
    page_name: Optional[str] = None
    access_token: Optional[str] = None


class AssetData(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    file_name: str = ""
    file_type: str = ""
    file_url: str = ""
    storage_path: str = ""


class CampaignDraftFields(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    campaign_name: str = Field(min_length=1)
    objective: str = "sales"
    goal: str = ""
    daily_budget: Decimal = Field(gt=0)
    currency: str = "USD"
    start_time: str
    end_time: Optional[str] = None
    description: str = ""
    offer: Optional[str] = None
    asset_type: AssetType = "upload"
    selected_catalog_id: Optional[str] = None
    selected_catalog_name: Optional[str] = None
    selected_page_id: Optional[str] = None
    selected_page_name: Optional[str] = None
    account_id: Optional[str] = None
    account_name: Optional[str] = None


class CampaignDraft(CampaignDraftFields):
    campaign_id: str


class AgentPayload(BaseModel):
    """Everything one launch attempt needs, resolved up front and never mutated."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    campaign_id: str
    campaign_name: str
    objective: str
    goal: str = ""
    daily_budget: Decimal
    currency: str = "USD"
    start_time: str
    end_time: Optional[str] = None
    description: str = ""
    offer: Optional[str] = None

    meta_connection: MetaConnectionData
    brief: Mapping[str, Any] = Field(default_factory=dict)

    asset_type: AssetType
    assets: tuple[AssetData, ...] = ()

    catalog_id: Optional[str] = None
    catalog_name: Optional[str] = None
    page_id: Optional[str] = None
    page_name: Optional[str] = None
    account_id: Optional[str] = None
    account_name: Optional[str] = None

    agent_mode: AgentModeEnum = AgentModeEnum.TEST_MODE
    timestamp: str

    @field_validator("brief", mode="after")
    @classmethod
    def _freeze_brief(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(copy.deepcopy(dict(value)))
