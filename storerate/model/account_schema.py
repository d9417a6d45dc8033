from pydantic import BaseModel


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    address: str


class AccountCreate(RegisterRequest):
    role: str


class LoginRequest(BaseModel):
    email: str
    password: str


class PasswordChange(BaseModel):
    new_password: str


class AccountSummary(BaseModel):
    id: int
    name: str
    email: str
    address: str
    role: str

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: AccountSummary


class MessageResponse(BaseModel):
    success: bool = True
    message: str
