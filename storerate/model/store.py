from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from storerate.core.clock import utcnow
from storerate.model.base import Base


class Store(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(60), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    address = Column(String(400), nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
