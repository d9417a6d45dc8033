import logging
from typing import Tuple

from sqlalchemy.orm import Session

from storerate.auth import validators
from storerate.auth.password import PasswordHasher
from storerate.auth.token import Identity, TokenService
from storerate.core.errors import ConflictError, InvalidCredentials, NotFoundError, ValidationError
from storerate.model.account import Account, Role
from storerate.repository import account as account_repository

logger = logging.getLogger(__name__)

ACCOUNT_FIELDS = ("name", "email", "password", "address")


class AuthService:
    def __init__(self, db: Session, hasher: PasswordHasher, tokens: TokenService):
        self.db = db
        self.hasher = hasher
        self.tokens = tokens

    def register(self, name: str, email: str, password: str, address: str) -> Tuple[Account, str]:
        """Create a USER account and sign a token for it."""
        account = self.create_account(name, email, password, address, Role.USER.value)
        return account, self.issue_for(account)

    def create_account(self, name: str, email: str, password: str, address: str, role: str) -> Account:
        """Validate and persist one account. The role is fixed from here on."""
        data = {"name": name, "email": email, "password": password, "address": address, "role": role}
        validators.validate_fields(data, ACCOUNT_FIELDS + ("role",))

        email = validators.normalize_email(email)
        if account_repository.email_exists(self.db, email):
            raise ConflictError("Email already registered", errors={"email": "Email already registered"})

        account = account_repository.create_account(
            self.db,
            name=name.strip(),
            email=email,
            password_hash=self.hasher.hash(password),
            address=address.strip(),
            role=role,
        )
        logger.info("Account created id=%s role=%s", account.id, account.role)
        return account

    def login(self, email: str, password: str) -> Tuple[Account, str]:
        if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
            raise InvalidCredentials()

        account = account_repository.get_account_by_email(self.db, validators.normalize_email(email))
        if account is None:
            self.hasher.burn(password)
            logger.info("Failed login")
            raise InvalidCredentials()
        if not self.hasher.verify(password, account.password):
            logger.info("Failed login")
            raise InvalidCredentials()

        return account, self.issue_for(account)

    def change_password(self, identity: Identity, new_password: str) -> None:
        error = validators.password(new_password)
        if error:
            raise ValidationError(errors={"new_password": error})
        if not account_repository.update_password(self.db, identity.account_id, self.hasher.hash(new_password)):
            raise NotFoundError("Account not found")
        logger.info("Password changed id=%s", identity.account_id)

    def issue_for(self, account: Account) -> str:
        return self.tokens.issue(account.id, account.email, Role(account.role))
