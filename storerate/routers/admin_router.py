from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storerate.auth.dependencies import require_roles
from storerate.db.session import get_db
from storerate.model.account import Role
from storerate.model.account_schema import AccountCreate, AccountSummary
from storerate.model.store_schema import AdminDashboard, StoreCreate, StoreResponse
from storerate.routers.auth_router import get_auth_service
from storerate.service import store as store_service
from storerate.service.auth import AuthService

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_roles(Role.ADMIN))])


@router.get("/dashboard", response_model=AdminDashboard)
def dashboard(db: Session = Depends(get_db)):
    return store_service.admin_dashboard(db)


@router.post("/users", response_model=AccountSummary, status_code=status.HTTP_201_CREATED)
def create_user(data: AccountCreate, auth: AuthService = Depends(get_auth_service)):
    return auth.create_account(data.name, data.email, data.password, data.address, data.role)


@router.post("/stores", response_model=StoreResponse, status_code=status.HTTP_201_CREATED)
def create_store(data: StoreCreate, db: Session = Depends(get_db)):
    return store_service.create_store(db, data.name, data.email, data.address, data.owner_id)
