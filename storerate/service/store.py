import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from storerate.auth import validators
from storerate.core.errors import ConflictError, ValidationError
from storerate.model.account import Role
from storerate.model.rating_schema import OwnerDashboard, RatingWithRater
from storerate.model.store import Store
from storerate.model.store_schema import AdminDashboard, StoreResponse, StoreWithRating
from storerate.repository import account as account_repository
from storerate.repository import rating as rating_repository
from storerate.repository import store as store_repository

logger = logging.getLogger(__name__)


def create_store(db: Session, name: str, email: str, address: str, owner_id: Optional[int] = None) -> Store:
    validators.validate_fields({"name": name, "email": email, "address": address}, ("name", "email", "address"))
    email = validators.normalize_email(email)
    if store_repository.store_email_exists(db, email):
        raise ConflictError("Store email already exists", errors={"email": "Store email already exists"})

    if owner_id is not None:
        # checked only at assignment; a later change of the account is not tracked
        owner = account_repository.get_account_by_id(db, owner_id)
        if owner is None or owner.role != Role.OWNER.value:
            raise ValidationError(errors={"owner_id": "Invalid owner ID or user is not an owner"})

    store = store_repository.create_store(db, name.strip(), email, address.strip(), owner_id)
    logger.info("Store created id=%s owner=%s", store.id, owner_id)
    return store


def stores_for_user(db: Session, user_id: int) -> List[StoreWithRating]:
    averages = rating_repository.averages_by_store(db)
    mine = rating_repository.scores_by_user(db, user_id)
    return [
        StoreWithRating(
            **StoreResponse.model_validate(store).model_dump(),
            avg_rating=averages.get(store.id, 0),
            user_rating=mine.get(store.id),
        )
        for store in store_repository.get_stores(db)
    ]


def owner_dashboard(db: Session, owner_id: int) -> OwnerDashboard:
    store = store_repository.get_store_by_owner(db, owner_id)
    if store is None:
        return OwnerDashboard()

    ratings = [
        RatingWithRater(
            id=rating.id,
            user_id=rating.user_id,
            store_id=rating.store_id,
            score=rating.score,
            created_at=rating.created_at,
            updated_at=rating.updated_at,
            user_name=user_name,
            user_email=user_email,
        )
        for rating, user_name, user_email in rating_repository.ratings_with_raters(db, store.id)
    ]
    return OwnerDashboard(
        store=StoreResponse.model_validate(store),
        avg_rating=rating_repository.average_for_store(db, store.id),
        ratings=ratings,
    )


def admin_dashboard(db: Session) -> AdminDashboard:
    return AdminDashboard(
        total_users=account_repository.count_accounts(db),
        total_stores=store_repository.count_stores(db),
        total_ratings=rating_repository.count_ratings(db),
    )
