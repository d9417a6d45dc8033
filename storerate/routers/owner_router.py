from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storerate.auth.dependencies import get_identity, require_roles
from storerate.auth.token import Identity
from storerate.db.session import get_db
from storerate.model.account import Role
from storerate.model.account_schema import MessageResponse, PasswordChange
from storerate.model.rating_schema import OwnerDashboard
from storerate.routers.auth_router import get_auth_service
from storerate.service import store as store_service
from storerate.service.auth import AuthService

router = APIRouter(prefix="/owner", tags=["Owner"], dependencies=[Depends(require_roles(Role.OWNER))])


@router.get("/my-store/ratings", response_model=OwnerDashboard)
def my_store_ratings(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return store_service.owner_dashboard(db, identity.account_id)


@router.put("/password", response_model=MessageResponse)
def update_password(
    data: PasswordChange,
    identity: Identity = Depends(get_identity),
    auth: AuthService = Depends(get_auth_service),
):
    auth.change_password(identity, data.new_password)
    return MessageResponse(message="Password updated successfully")
