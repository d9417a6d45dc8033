from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storerate.core.clock import utcnow
from storerate.core.errors import ConflictError
from storerate.model.account import Account


def get_account_by_email(db: Session, email: str) -> Optional[Account]:
    return db.execute(select(Account).where(Account.email == email)).scalar_one_or_none()


def get_account_by_id(db: Session, id: int) -> Optional[Account]:
    return db.get(Account, id)


def email_exists(db: Session, email: str) -> bool:
    return db.execute(select(Account.id).where(Account.email == email)).first() is not None


def create_account(db: Session, name: str, email: str, password_hash: str, address: str, role: str) -> Account:
    now = utcnow()
    new_account = Account(
        name=name,
        email=email,
        password=password_hash,
        address=address,
        role=role,
        created_at=now,
        updated_at=now,
    )
    db.add(new_account)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent registration with the same email won the unique index
        db.rollback()
        raise ConflictError("Email already registered", errors={"email": "Email already registered"})
    db.refresh(new_account)
    return new_account


def update_password(db: Session, id: int, password_hash: str) -> bool:
    account = db.get(Account, id)
    if account is None:
        return False
    account.password = password_hash
    account.updated_at = utcnow()
    db.commit()
    return True


def count_accounts(db: Session) -> int:
    return db.execute(select(func.count(Account.id))).scalar_one()
