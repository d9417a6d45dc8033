import enum

from sqlalchemy import Column, DateTime, Integer, String

from storerate.core.clock import utcnow
from storerate.model.base import Base


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    USER = "USER"
    OWNER = "OWNER"


class Account(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(60), nullable=False)
    # always stored lower-cased, so the unique index is case-insensitive
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    address = Column(String(400), nullable=False)
    role = Column(String(10), nullable=False, default=Role.USER.value)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<Account(id={self.id}, email={self.email}, role={self.role})>"
