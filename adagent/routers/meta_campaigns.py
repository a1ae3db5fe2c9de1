from __future__ import annotations

import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from adagent.auth.dependencies import AuthContext, get_current_user
from adagent.db.deps import get_session
from adagent.db.repositories.campaigns import CampaignsRepository
from adagent.schemas.agent_payload import AgentPayload
from adagent.services.meta_ads import MetaAdsClient
from adagent.services.meta_campaign_launch import LaunchResult, create_remote_campaign

router = APIRouter(prefix="/meta", tags=["meta"])
logger = logging.getLogger("meta.launch")

MetaClientFactory = Callable[[str], MetaAdsClient]


def get_meta_client_factory() -> MetaClientFactory:
    return lambda access_token: MetaAdsClient(access_token=access_token)


def run_launch(
    payload: AgentPayload,
    *,
    session: Session,
    client_factory: MetaClientFactory,
) -> LaunchResult:
    token = payload.meta_connection.access_token
    client: Optional[MetaAdsClient] = client_factory(token) if token else None
    return create_remote_campaign(payload, campaigns=CampaignsRepository(session), client=client)


def launch_response(result: LaunchResult) -> ORJSONResponse:
    status_code = status.HTTP_200_OK if result.success else status.HTTP_400_BAD_REQUEST
    return ORJSONResponse(status_code=status_code, content=result.to_response())


@router.post("/create-campaign")
def create_campaign(
    payload: AgentPayload,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    client_factory: MetaClientFactory = Depends(get_meta_client_factory),
):
    if payload.user_id != auth.user_id:
        logger.warning(
            "Payload user does not match token subject",
            extra={"sub": auth.user_id, "payload_user_id": payload.user_id},
        )
        return ORJSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"success": False, "error": "Payload user does not match the authenticated user."},
        )
    result = run_launch(payload, session=session, client_factory=client_factory)
    return launch_response(result)
