from typing import Optional

from pydantic import BaseModel


class StoreCreate(BaseModel):
    name: str
    email: str
    address: str
    owner_id: Optional[int] = None


class StoreResponse(BaseModel):
    id: int
    name: str
    email: str
    address: str
    owner_id: Optional[int] = None

    class Config:
        from_attributes = True


class StoreWithRating(StoreResponse):
    avg_rating: float = 0
    user_rating: Optional[int] = None


class AdminDashboard(BaseModel):
    total_users: int
    total_stores: int
    total_ratings: int
