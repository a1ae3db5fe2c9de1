from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

import sqlalchemy as sa
from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from adagent.db.base import Base
from adagent.db.enums import CampaignStatusEnum, LaunchStateEnum

JSONType = sa.JSON().with_variant(JSONB(), "postgresql")


def _new_id() -> str:
    return str(uuid4())


class MetaConnection(Base):
    __tablename__ = "meta_connections"
    __table_args__ = (UniqueConstraint("user_id", name="uq_meta_connections_user"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    ad_account_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pixel_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    catalog_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    catalog_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    page_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    page_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_connected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class ClientBrief(Base):
    __tablename__ = "client_briefs"
    __table_args__ = (
        UniqueConstraint("user_id", "version_number", name="uq_client_briefs_user_version"),
        sa.Index("idx_client_briefs_user", "user_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class Campaign(Base):
    __tablename__ = "campaigns"
    __table_args__ = (sa.Index("idx_campaigns_user", "user_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    objective: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    goal: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    daily_budget: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[CampaignStatusEnum] = mapped_column(
        Enum(CampaignStatusEnum, name="campaign_status", native_enum=False),
        nullable=False,
        default=CampaignStatusEnum.draft,
    )
    launch_state: Mapped[LaunchStateEnum] = mapped_column(
        Enum(LaunchStateEnum, name="campaign_launch_state", native_enum=False),
        nullable=False,
        default=LaunchStateEnum.idle,
    )
    meta_campaign_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meta_adset_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meta_creative_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meta_ad_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class CampaignAsset(Base):
    __tablename__ = "campaign_assets"
    __table_args__ = (sa.Index("idx_campaign_assets_user_campaign", "user_id", "campaign_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    campaign_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True
    )
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_type: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    storage_path: Mapped[str] = mapped_column(Text, nullable=False)
    public_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
