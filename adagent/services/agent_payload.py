from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from adagent.db.enums import AgentModeEnum, AssetTypeEnum
from adagent.db.repositories.assets import AssetsRepository
from adagent.db.repositories.briefs import BriefsRepository
from adagent.db.repositories.meta_connections import MetaConnectionsRepository
from adagent.schemas.agent_payload import AgentPayload, AssetData, CampaignDraft, MetaConnectionData

logger = logging.getLogger("meta.payload")

NOT_CONNECTED_ERROR = "No connected Meta account found. Please connect your Meta account first."
NO_AD_ACCOUNT_ERROR = "No Ad Account ID found. Please select an Ad Account in your Meta connection settings."
NO_ACCESS_TOKEN_ERROR = "No access token found. Please reconnect your Meta account."


@dataclass(frozen=True)
class PayloadResult:
    payload: Optional[AgentPayload] = None
    error: Optional[str] = None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_agent_payload(session: Session, *, user_id: str, draft: CampaignDraft) -> PayloadResult:
    connection_row = MetaConnectionsRepository(session).get_connected(user_id=user_id)
    if connection_row is None:
        return PayloadResult(error=NOT_CONNECTED_ERROR)
    if not connection_row.ad_account_id:
        return PayloadResult(error=NO_AD_ACCOUNT_ERROR)
    if not connection_row.access_token:
        return PayloadResult(error=NO_ACCESS_TOKEN_ERROR)

    connection = MetaConnectionData(
        ad_account_id=connection_row.ad_account_id,
        pixel_id=connection_row.pixel_id or None,
        catalog_id=connection_row.catalog_id or None,
        catalog_name=connection_row.catalog_name or None,
        page_id=connection_row.page_id or None,
        page_name=connection_row.page_name or None,
        access_token=connection_row.access_token,
    )

    brief_row = BriefsRepository(session).get_latest(user_id=user_id)
    if brief_row is None:
        logger.warning("No brief found; proceeding without brief data", extra={"user_id": user_id})
        brief: dict = {}
    else:
        brief = dict(brief_row.data or {})

    assets: list[AssetData] = []
    if draft.asset_type == AssetTypeEnum.upload.value:
        rows = AssetsRepository(session).list_for_campaign(user_id=user_id, campaign_id=draft.campaign_id)
        assets = [
            AssetData(
                id=row.id,
                file_name=row.file_name or "",
                file_type=row.file_type or "",
                file_url=row.public_url or "",
                storage_path=row.storage_path or "",
            )
            for row in rows
        ]

    is_catalog = draft.asset_type == AssetTypeEnum.catalog.value
    payload = AgentPayload(
        user_id=user_id,
        campaign_id=draft.campaign_id,
        campaign_name=draft.campaign_name,
        objective=draft.objective,
        goal=draft.goal,
        daily_budget=draft.daily_budget,
        currency=draft.currency,
        start_time=draft.start_time,
        end_time=draft.end_time,
        description=draft.description,
        offer=draft.offer,
        meta_connection=connection,
        brief=brief,
        asset_type=draft.asset_type,
        assets=tuple(assets),
        catalog_id=(draft.selected_catalog_id or connection.catalog_id) if is_catalog else None,
        catalog_name=(draft.selected_catalog_name or connection.catalog_name) if is_catalog else None,
        page_id=draft.selected_page_id or connection.page_id,
        page_name=draft.selected_page_name or connection.page_name,
        account_id=draft.account_id,
        account_name=draft.account_name,
        agent_mode=AgentModeEnum.TEST_MODE,
        timestamp=_now_iso(),
    )

    logger.info(
        "Agent payload built",
        extra={
            "user_id": user_id,
            "campaign_id": draft.campaign_id,
            "has_brief": bool(brief),
            "assets_count": len(assets),
            "asset_type": draft.asset_type,
            "agent_mode": payload.agent_mode.value,
        },
    )
    return PayloadResult(payload=payload)
