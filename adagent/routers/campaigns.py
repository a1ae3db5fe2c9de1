from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from adagent.auth.dependencies import AuthContext, get_current_user
from adagent.db.deps import get_session
from adagent.db.repositories.campaigns import CampaignsRepository
from adagent.routers.meta_campaigns import (
    MetaClientFactory,
    get_meta_client_factory,
    launch_response,
    run_launch,
)
from adagent.schemas.agent_payload import CampaignDraft, CampaignDraftFields
from adagent.schemas.campaigns import CampaignCreate, CampaignOut
from adagent.services.agent_payload import build_agent_payload

router = APIRouter(prefix="/campaigns", tags=["campaigns"])
logger = logging.getLogger("meta.launch")


@router.post("", response_model=CampaignOut, status_code=status.HTTP_201_CREATED)
def create_campaign(
    payload: CampaignCreate,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return CampaignsRepository(session).create(user_id=auth.user_id, **payload.model_dump(exclude_none=True))


@router.get("", response_model=list[CampaignOut])
def list_campaigns(
    limit: int = 50,
    offset: int = 0,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return CampaignsRepository(session).list(user_id=auth.user_id, limit=limit, offset=offset)


@router.get("/{campaign_id}", response_model=CampaignOut)
def get_campaign(
    campaign_id: str,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    campaign = CampaignsRepository(session).get(user_id=auth.user_id, campaign_id=campaign_id)
    if not campaign:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Campaign not found")
    return campaign


@router.post("/{campaign_id}/launch")
def launch_campaign(
    campaign_id: str,
    payload: CampaignDraftFields,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    client_factory: MetaClientFactory = Depends(get_meta_client_factory),
):
    campaigns_repo = CampaignsRepository(session)
    if not campaigns_repo.get(user_id=auth.user_id, campaign_id=campaign_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Campaign not found")

    if not campaigns_repo.acquire_launch(user_id=auth.user_id, campaign_id=campaign_id):
        logger.warning("Launch already in progress", extra={"user_id": auth.user_id, "campaign_id": campaign_id})
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Launch already in progress")

    try:
        draft = CampaignDraft(campaign_id=campaign_id, **payload.model_dump())
        built = build_agent_payload(session, user_id=auth.user_id, draft=draft)
        if built.payload is None:
            return ORJSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"success": False, "error": built.error},
            )
        result = run_launch(built.payload, session=session, client_factory=client_factory)
        return launch_response(result)
    finally:
        campaigns_repo.release_launch(user_id=auth.user_id, campaign_id=campaign_id)
