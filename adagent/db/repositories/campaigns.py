from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from adagent.db.enums import CampaignStatusEnum, LaunchStateEnum
from adagent.db.models import Campaign


class CampaignsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, *, user_id: str, campaign_id: str) -> Optional[Campaign]:
        stmt = select(Campaign).where(Campaign.user_id == user_id, Campaign.id == campaign_id)
        return self.session.scalars(stmt).first()

    def list(self, *, user_id: str, limit: int = 50, offset: int = 0) -> list[Campaign]:
        stmt = (
            select(Campaign)
            .where(Campaign.user_id == user_id)
            .order_by(Campaign.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self.session.scalars(stmt).all())

    def create(self, *, user_id: str, name: str, **fields) -> Campaign:
        campaign = Campaign(user_id=user_id, name=name, **fields)
        self.session.add(campaign)
        self.session.commit()
        self.session.refresh(campaign)
        return campaign

    def set_meta_ids(
        self,
        *,
        user_id: str,
        campaign_id: str,
        meta_campaign_id: str,
        meta_adset_id: str,
        meta_creative_id: str,
        meta_ad_id: str,
    ) -> bool:
        """Mirror the four remote ids onto the local row in a single commit."""
        stmt = (
            update(Campaign)
            .where(Campaign.id == campaign_id, Campaign.user_id == user_id)
            .values(
                meta_campaign_id=meta_campaign_id,
                meta_adset_id=meta_adset_id,
                meta_creative_id=meta_creative_id,
                meta_ad_id=meta_ad_id,
                status=CampaignStatusEnum.paused,
            )
        )
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return result.rowcount > 0

    def acquire_launch(self, *, user_id: str, campaign_id: str) -> bool:
        stmt = (
            update(Campaign)
            .where(
                Campaign.id == campaign_id,
                Campaign.user_id == user_id,
                Campaign.launch_state == LaunchStateEnum.idle,
            )
            .values(launch_state=LaunchStateEnum.launching)
        )
        result = self.session.execute(stmt)
        self.session.commit()
        return result.rowcount == 1

    def release_launch(self, *, user_id: str, campaign_id: str) -> None:
        stmt = (
            update(Campaign)
            .where(Campaign.id == campaign_id, Campaign.user_id == user_id)
            .values(launch_state=LaunchStateEnum.idle)
        )
        self.session.execute(stmt)
        self.session.commit()
