from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from storerate.auth.dependencies import get_identity, require_roles
from storerate.auth.token import Identity
from storerate.db.session import get_db
from storerate.model.account import Role
from storerate.model.account_schema import MessageResponse, PasswordChange
from storerate.model.rating_schema import RatingResponse, RatingSubmit
from storerate.model.store_schema import StoreWithRating
from storerate.routers.auth_router import get_auth_service
from storerate.service import store as store_service
from storerate.service.auth import AuthService
from storerate.service.rating import RatingEngine

router = APIRouter(prefix="/user", tags=["User"], dependencies=[Depends(require_roles(Role.USER))])


def get_rating_engine(request: Request, db: Session = Depends(get_db)) -> RatingEngine:
    return RatingEngine(db, locks=request.app.state.rating_locks)


@router.get("/stores", response_model=List[StoreWithRating])
def list_stores(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return store_service.stores_for_user(db, identity.account_id)


@router.post("/ratings", response_model=RatingResponse)
def submit_rating(
    data: RatingSubmit,
    identity: Identity = Depends(get_identity),
    engine: RatingEngine = Depends(get_rating_engine),
):
    row = engine.submit(identity.account_id, data.store_id, data.score)
    return RatingResponse.model_validate(dict(row._mapping))


@router.put("/password", response_model=MessageResponse)
def update_password(
    data: PasswordChange,
    identity: Identity = Depends(get_identity),
    auth: AuthService = Depends(get_auth_service),
):
    auth.change_password(identity, data.new_password)
    return MessageResponse(message="Password updated successfully")
