from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class BriefCreateRequest(BaseModel):
    data: dict[str, Any]


class BriefOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    version_number: int
    data: dict[str, Any]
    created_at: datetime
