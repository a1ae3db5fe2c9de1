from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from adagent.db.models import ClientBrief


class BriefsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_latest(self, *, user_id: str) -> Optional[ClientBrief]:
        stmt = (
            select(ClientBrief)
            .where(ClientBrief.user_id == user_id)
            .order_by(ClientBrief.version_number.desc())
            .limit(1)
        )
        return self.session.scalars(stmt).first()

    def list_versions(self, *, user_id: str) -> list[ClientBrief]:
        stmt = (
            select(ClientBrief)
            .where(ClientBrief.user_id == user_id)
            .order_by(ClientBrief.version_number.desc())
        )
        return list(self.session.scalars(stmt).all())

    def create_version(self, *, user_id: str, data: dict[str, Any]) -> ClientBrief:
        current = self.session.scalar(
            select(func.max(ClientBrief.version_number)).where(ClientBrief.user_id == user_id)
        )
        record = ClientBrief(user_id=user_id, version_number=(current or 0) + 1, data=dict(data))
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record
