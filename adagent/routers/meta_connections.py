from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from adagent.auth.dependencies import AuthContext, get_current_user
from adagent.db.deps import get_session
from adagent.db.models import MetaConnection
from adagent.db.repositories.meta_connections import MetaConnectionsRepository
from adagent.schemas.meta_connections import (
    MetaConnectionLinkRequest,
    MetaConnectionOut,
    MetaSelectionsUpdateRequest,
)

router = APIRouter(prefix="/meta/connection", tags=["meta"])
logger = logging.getLogger("meta.connection")


def _serialize_connection(record: MetaConnection) -> MetaConnectionOut:
    return MetaConnectionOut(
        user_id=record.user_id,
        ad_account_id=record.ad_account_id,
        pixel_id=record.pixel_id,
        catalog_id=record.catalog_id,
        catalog_name=record.catalog_name,
        page_id=record.page_id,
        page_name=record.page_name,
        is_connected=bool(record.is_connected),
        has_access_token=bool(record.access_token),
        updated_at=record.updated_at,
    )


@router.get("", response_model=MetaConnectionOut)
def get_connection(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    record = MetaConnectionsRepository(session).get(user_id=auth.user_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Meta connection not found")
    return _serialize_connection(record)


@router.put("", response_model=MetaConnectionOut)
def link_connection(
    payload: MetaConnectionLinkRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    fields = payload.model_dump(exclude={"access_token"}, exclude_none=True)
    record = MetaConnectionsRepository(session).upsert(
        user_id=auth.user_id,
        access_token=payload.access_token,
        **fields,
    )
    logger.info(
        "Meta connection linked",
        extra={"user_id": auth.user_id, "ad_account_id": record.ad_account_id, "has_access_token": True},
    )
    return _serialize_connection(record)


@router.patch("/selections", response_model=MetaConnectionOut)
def update_selections(
    payload: MetaSelectionsUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    fields = payload.model_dump(exclude_none=True)
    if not fields:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No selections provided")
    record = MetaConnectionsRepository(session).update_selections(user_id=auth.user_id, **fields)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Meta connection not found")
    return _serialize_connection(record)


@router.post("/disconnect", response_model=MetaConnectionOut)
def disconnect(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    record = MetaConnectionsRepository(session).disconnect(user_id=auth.user_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Meta connection not found")
    logger.info("Meta connection disconnected", extra={"user_id": auth.user_id})
    return _serialize_connection(record)
