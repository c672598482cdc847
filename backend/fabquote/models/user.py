from sqlalchemy import Boolean, Column, Integer, String

from .base import BaseModel


class User(BaseModel):
    """Tenant account; every quote, client and catalog row is owned by one."""

    __tablename__ = "users"

    id        = Column(Integer, primary_key=True, index=True)
    email     = Column(String, unique=True, index=True, nullable=False)
    name      = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
