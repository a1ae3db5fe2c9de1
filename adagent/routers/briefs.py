from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from adagent.auth.dependencies import AuthContext, get_current_user
from adagent.db.deps import get_session
from adagent.db.repositories.briefs import BriefsRepository
from adagent.schemas.briefs import BriefCreateRequest, BriefOut

router = APIRouter(prefix="/briefs", tags=["briefs"])


@router.post("", response_model=BriefOut, status_code=status.HTTP_201_CREATED)
def create_brief(
    payload: BriefCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return BriefsRepository(session).create_version(user_id=auth.user_id, data=payload.data)


@router.get("/latest", response_model=BriefOut)
def get_latest_brief(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    brief = BriefsRepository(session).get_latest(user_id=auth.user_id)
    if not brief:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Brief not found")
    return brief
