from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from adagent.auth.dependencies import AuthContext, get_current_user
from adagent.db.deps import get_session
from adagent.db.repositories.assets import AssetsRepository
from adagent.db.repositories.campaigns import CampaignsRepository
from adagent.schemas.campaigns import CampaignAssetOut
from adagent.services.assets import AssetNotFoundError, AssetUploadError, delete_asset, upload_asset
from adagent.services.media_storage import MediaStorage, MediaStorageConfigurationError

router = APIRouter(tags=["assets"])
logger = logging.getLogger("assets")

_ASSET_MAX_BYTES = 200 * 1024 * 1024


def get_media_storage() -> MediaStorage:
    return MediaStorage()


def get_optional_media_storage() -> Optional[MediaStorage]:
    try:
        return MediaStorage()
    except MediaStorageConfigurationError as exc:
        logger.warning("Media storage unavailable", extra={"error": str(exc)})
        return None


def _require_campaign(session: Session, *, user_id: str, campaign_id: str) -> None:
    if not CampaignsRepository(session).get(user_id=user_id, campaign_id=campaign_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Campaign not found")


@router.post(
    "/campaigns/{campaign_id}/assets",
    response_model=CampaignAssetOut,
    status_code=status.HTTP_201_CREATED,
)
async def upload_campaign_asset(
    campaign_id: str,
    file: UploadFile = File(...),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    storage: MediaStorage = Depends(get_media_storage),
):
    _require_campaign(session, user_id=auth.user_id, campaign_id=campaign_id)
    content = await file.read()
    if len(content) > _ASSET_MAX_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File {file.filename or 'upload'} exceeds {_ASSET_MAX_BYTES} bytes.",
        )
    try:
        return upload_asset(
            session=session,
            user_id=auth.user_id,
            campaign_id=campaign_id,
            content_bytes=content,
            filename=file.filename,
            content_type=file.content_type,
            storage=storage,
        )
    except AssetUploadError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/campaigns/{campaign_id}/assets", response_model=list[CampaignAssetOut])
def list_campaign_assets(
    campaign_id: str,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    _require_campaign(session, user_id=auth.user_id, campaign_id=campaign_id)
    return AssetsRepository(session).list_for_campaign(user_id=auth.user_id, campaign_id=campaign_id)


@router.delete("/assets/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_asset(
    asset_id: str,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    storage: Optional[MediaStorage] = Depends(get_optional_media_storage),
) -> None:
    try:
        delete_asset(session=session, user_id=auth.user_id, asset_id=asset_id, storage=storage)
    except AssetNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Asset not found") from exc
