from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from adagent.db.models import CampaignAsset


class AssetsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, *, user_id: str, asset_id: str) -> Optional[CampaignAsset]:
        stmt = select(CampaignAsset).where(
            CampaignAsset.user_id == user_id,
            CampaignAsset.id == asset_id,
        )
        return self.session.scalars(stmt).first()

    def list_for_campaign(self, *, user_id: str, campaign_id: str) -> list[CampaignAsset]:
        stmt = (
            select(CampaignAsset)
            .where(CampaignAsset.user_id == user_id, CampaignAsset.campaign_id == campaign_id)
            .order_by(CampaignAsset.uploaded_at.desc())
        )
        return list(self.session.scalars(stmt).all())

    def create(self, **fields) -> CampaignAsset:
        record = CampaignAsset(**fields)
        self.session.add(record)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(record)
        return record

    def delete(self, record: CampaignAsset) -> None:
        self.session.delete(record)
        self.session.commit()
