import logging
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.engine import Row
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storerate.auth.validators import parse_score
from storerate.core.clock import utcnow
from storerate.core.errors import NotFoundError
from storerate.repository import rating as rating_repository
from storerate.repository.store import store_exists
from storerate.service.locks import KeyedLock

logger = logging.getLogger(__name__)


class RatingEngine:
    """One live rating per (user, store), plus the store average.

    On PostgreSQL and SQLite a submission is a single ``INSERT ... ON CONFLICT
    DO UPDATE``. Elsewhere submissions for the same pair are serialized on
    ``locks``, which must be shared by every engine in the process.
    """

    def __init__(
        self,
        db: Session,
        locks: Optional[KeyedLock] = None,
        clock: Callable[[], datetime] = utcnow,
        native_upsert: Optional[bool] = None,
    ):
        self.db = db
        self.locks = locks or KeyedLock()
        self.clock = clock
        if native_upsert is None:
            native_upsert = rating_repository.supports_native_upsert(db)
        self.native_upsert = native_upsert

    def submit(self, user_id: int, store_id: int, raw_score: Any) -> Row:
        """Store the score and return the rating row as this call left it."""
        score = parse_score(raw_score)
        if not store_exists(self.db, store_id):
            raise NotFoundError("Store not found")

        now = self.clock()
        try:
            if self.native_upsert:
                row = rating_repository.upsert_rating(self.db, user_id, store_id, score, now)
                self.db.commit()
            else:
                row = self._serialized_upsert(user_id, store_id, score, now)
        except Exception:
            self.db.rollback()
            raise

        logger.info("Rating stored user=%s store=%s score=%s", user_id, store_id, score)
        return row

    def _serialized_upsert(self, user_id: int, store_id: int, score: int, now: datetime) -> Row:
        with self.locks.hold((user_id, store_id)):
            if not rating_repository.update_rating(self.db, user_id, store_id, score, now):
                try:
                    rating_repository.insert_rating(self.db, user_id, store_id, score, now)
                except IntegrityError:
                    # another process inserted the pair first
                    self.db.rollback()
                    if not rating_repository.update_rating(self.db, user_id, store_id, score, now):
                        raise
            # read before commit, while this transaction still holds the row
            row = rating_repository.get_rating_row(self.db, user_id, store_id)
            self.db.commit()
            return row

    def average_for(self, store_id: int) -> float:
        if not store_exists(self.db, store_id):
            raise NotFoundError("Store not found")
        return rating_repository.average_for_store(self.db, store_id)
