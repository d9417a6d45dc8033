from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Row
from sqlalchemy.orm import Session

from storerate.model.account import Account
from storerate.model.rating import Rating

# dialects with a native INSERT ... ON CONFLICT DO UPDATE
NATIVE_UPSERT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def supports_native_upsert(db: Session) -> bool:
    return db.get_bind().dialect.name in NATIVE_UPSERT


def upsert_rating(db: Session, user_id: int, store_id: int, score: int, now: datetime) -> Row:
    """Single-statement insert-or-update on the (user_id, store_id) unique constraint.

    Returns the row as written by this statement.
    """
    insert = NATIVE_UPSERT[db.get_bind().dialect.name]
    stmt = insert(Rating.__table__).values(
        user_id=user_id,
        store_id=store_id,
        score=score,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "store_id"],
        set_={"score": stmt.excluded.score, "updated_at": stmt.excluded.updated_at},
    )
    return db.execute(stmt.returning(*Rating.__table__.c)).one()


def insert_rating(db: Session, user_id: int, store_id: int, score: int, now: datetime) -> None:
    db.add(Rating(user_id=user_id, store_id=store_id, score=score, created_at=now, updated_at=now))
    db.flush()


def update_rating(db: Session, user_id: int, store_id: int, score: int, now: datetime) -> int:
    result = db.execute(
        update(Rating.__table__)
        .where(Rating.__table__.c.user_id == user_id, Rating.__table__.c.store_id == store_id)
        .values(score=score, updated_at=now)
    )
    return result.rowcount


def get_rating_row(db: Session, user_id: int, store_id: int) -> Optional[Row]:
    table = Rating.__table__
    return db.execute(
        select(*table.c).where(table.c.user_id == user_id, table.c.store_id == store_id)
    ).one_or_none()


def round_average(value) -> float:
    if value is None:
        return 0
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def average_for_store(db: Session, store_id: int) -> float:
    avg = db.execute(select(func.avg(Rating.score)).where(Rating.store_id == store_id)).scalar_one()
    return round_average(avg)


def averages_by_store(db: Session) -> Dict[int, float]:
    rows = db.execute(select(Rating.store_id, func.avg(Rating.score)).group_by(Rating.store_id)).all()
    return {store_id: round_average(avg) for store_id, avg in rows}


def scores_by_user(db: Session, user_id: int) -> Dict[int, int]:
    rows = db.execute(select(Rating.store_id, Rating.score).where(Rating.user_id == user_id)).all()
    return {store_id: score for store_id, score in rows}


def ratings_with_raters(db: Session, store_id: int) -> List[Tuple[Rating, str, str]]:
    rows = db.execute(
        select(Rating, Account.name.label("user_name"), Account.email.label("user_email"))
        .join(Account, Rating.user_id == Account.id)
        .where(Rating.store_id == store_id)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
    ).all()
    return [(rating, user_name, user_email) for rating, user_name, user_email in rows]


def count_ratings(db: Session) -> int:
    return db.execute(select(func.count(Rating.id))).scalar_one()
