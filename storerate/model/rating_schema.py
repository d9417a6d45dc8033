from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from storerate.model.store_schema import StoreResponse


class RatingSubmit(BaseModel):
    store_id: int = Field(..., gt=0, lt=2**31)
    # parsed and range-checked by the rating engine
    score: Any


class RatingResponse(BaseModel):
    id: int
    user_id: int
    store_id: int
    score: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RatingWithRater(RatingResponse):
    user_name: str
    user_email: str


class OwnerDashboard(BaseModel):
    store: Optional[StoreResponse] = None
    avg_rating: float = 0
    ratings: List[RatingWithRater] = []
