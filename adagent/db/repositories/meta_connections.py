from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from adagent.db.models import MetaConnection

_SELECTION_FIELDS = (
    "ad_account_id",
    "pixel_id",
    "catalog_id",
    "catalog_name",
    "page_id",
    "page_name",
)


class MetaConnectionsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, *, user_id: str) -> Optional[MetaConnection]:
        stmt = select(MetaConnection).where(MetaConnection.user_id == user_id)
        return self.session.scalars(stmt).first()

    def get_connected(self, *, user_id: str) -> Optional[MetaConnection]:
        stmt = select(MetaConnection).where(
            MetaConnection.user_id == user_id,
            MetaConnection.is_connected.is_(True),
        )
        return self.session.scalars(stmt).first()

    def upsert(self, *, user_id: str, access_token: str, **fields) -> MetaConnection:
        record = self.get(user_id=user_id)
        if record is None:
            record = MetaConnection(user_id=user_id)
            self.session.add(record)
        record.access_token = access_token
        record.is_connected = True
        for key in _SELECTION_FIELDS:
            if key in fields:
                setattr(record, key, fields[key])
        self.session.commit()
        self.session.refresh(record)
        return record

    def update_selections(self, *, user_id: str, **fields) -> Optional[MetaConnection]:
        record = self.get(user_id=user_id)
        if record is None:
            return None
        for key in _SELECTION_FIELDS:
            value = fields.get(key)
            if value is not None:
                setattr(record, key, value)
        self.session.commit()
        self.session.refresh(record)
        return record

    def disconnect(self, *, user_id: str) -> Optional[MetaConnection]:
        record = self.get(user_id=user_id)
        if record is None:
            return None
        record.is_connected = False
        record.access_token = None
        self.session.commit()
        self.session.refresh(record)
        return record
