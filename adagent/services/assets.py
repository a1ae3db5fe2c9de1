from __future__ import annotations

import logging
import os
import time
from typing import Optional

from sqlalchemy.orm import Session

from adagent.db.models import CampaignAsset
from adagent.db.repositories.assets import AssetsRepository
from adagent.services.media_storage import MediaStorage

logger = logging.getLogger("assets")

_VIDEO_EXTENSIONS = frozenset({"mp4", "mov", "avi", "webm", "mkv", "m4v"})
_IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp", "bmp", "svg"})


class AssetUploadError(ValueError):
    pass


class AssetNotFoundError(LookupError):
    pass


def resolve_content_type(content_type: Optional[str], filename: Optional[str]) -> str:
    cleaned = (content_type or "").split(";")[0].strip().lower()
    if cleaned:
        return cleaned
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
    if not ext:
        return "application/octet-stream"
    if ext in _VIDEO_EXTENSIONS:
        return f"video/{ext}"
    if ext in _IMAGE_EXTENSIONS:
        return f"image/{ext}"
    return f"application/{ext}"


def upload_asset(
    *,
    session: Session,
    user_id: str,
    campaign_id: Optional[str],
    content_bytes: bytes,
    filename: Optional[str],
    content_type: Optional[str],
    storage: Optional[MediaStorage] = None,
) -> CampaignAsset:
    """
    Store the file, then record it. If the row cannot be written the stored object is removed
    again so storage never holds files the database does not know about.
    """
    if not content_bytes:
        raise AssetUploadError(f"File {filename or 'upload'} is empty.")

    file_name = filename or "upload"
    file_type = resolve_content_type(content_type, filename)
    storage = storage or MediaStorage()
    key = storage.build_key(
        user_id=user_id,
        campaign_id=campaign_id,
        filename=file_name,
        timestamp_ms=int(time.time() * 1000),
    )

    storage.upload_bytes(key=key, data=content_bytes, content_type=file_type)
    public_url = storage.public_url(key)
    logger.info(
        "Asset stored",
        extra={"user_id": user_id, "campaign_id": campaign_id, "key": key, "size": len(content_bytes)},
    )

    try:
        return AssetsRepository(session).create(
            user_id=user_id,
            campaign_id=campaign_id,
            file_name=file_name,
            file_type=file_type,
            file_size=len(content_bytes),
            storage_path=key,
            public_url=public_url,
        )
    except Exception:
        logger.exception("Asset row insert failed; removing stored object", extra={"key": key})
        try:
            storage.delete_object(key=key)
        except Exception:
            logger.exception("Failed to remove orphaned storage object", extra={"key": key})
        raise


def delete_asset(
    *,
    session: Session,
    user_id: str,
    asset_id: str,
    storage: Optional[MediaStorage] = None,
) -> None:
    repo = AssetsRepository(session)
    asset = repo.get(user_id=user_id, asset_id=asset_id)
    if asset is None:
        raise AssetNotFoundError(f"Asset {asset_id} not found")

    if asset.storage_path and storage is None:
        logger.warning(
            "Storage not configured; removing asset row only",
            extra={"asset_id": asset_id, "key": asset.storage_path},
        )
    elif asset.storage_path:
        try:
            storage.delete_object(key=asset.storage_path)
        except Exception as exc:
            logger.warning(
                "Storage delete failed; removing asset row anyway",
                extra={"asset_id": asset_id, "key": asset.storage_path, "error": str(exc)},
            )

    repo.delete(asset)
    logger.info("Asset deleted", extra={"user_id": user_id, "asset_id": asset_id})
