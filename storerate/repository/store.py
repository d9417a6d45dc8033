from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storerate.core.clock import utcnow
from storerate.core.errors import ConflictError
from storerate.model.store import Store


def create_store(db: Session, name: str, email: str, address: str, owner_id: Optional[int] = None) -> Store:
    now = utcnow()
    new_store = Store(
        name=name,
        email=email,
        address=address,
        owner_id=owner_id,
        created_at=now,
        updated_at=now,
    )
    db.add(new_store)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Store email already exists", errors={"email": "Store email already exists"})
    db.refresh(new_store)
    return new_store


def store_exists(db: Session, id: int) -> bool:
    return db.execute(select(Store.id).where(Store.id == id)).first() is not None


def store_email_exists(db: Session, email: str) -> bool:
    return db.execute(select(Store.id).where(Store.email == email)).first() is not None


def get_store_by_owner(db: Session, owner_id: int) -> Optional[Store]:
    return db.execute(
        select(Store).where(Store.owner_id == owner_id).order_by(Store.id).limit(1)
    ).scalar_one_or_none()


def get_stores(db: Session) -> List[Store]:
    return list(db.execute(select(Store).order_by(Store.name)).scalars())


def count_stores(db: Session) -> int:
    return db.execute(select(func.count(Store.id))).scalar_one()
