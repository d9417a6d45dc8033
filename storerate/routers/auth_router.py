from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storerate.auth.dependencies import get_hasher, get_token_service
from storerate.auth.password import PasswordHasher
from storerate.auth.token import TokenService
from storerate.db.session import get_db
from storerate.model.account_schema import AccountSummary, AuthResponse, LoginRequest, RegisterRequest
from storerate.service.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


def get_auth_service(
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_hasher),
    tokens: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(db, hasher, tokens)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    account, token = auth.register(data.name, data.email, data.password, data.address)
    return AuthResponse(access_token=token, user=AccountSummary.model_validate(account))


@router.post("/login", response_model=AuthResponse)
def login(data: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    account, token = auth.login(data.email, data.password)
    return AuthResponse(access_token=token, user=AccountSummary.model_validate(account))
