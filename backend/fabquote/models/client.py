from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from .base import BaseModel


class Client(BaseModel):
    __tablename__ = "clients"

    id         = Column(Integer, primary_key=True, index=True)
    owner_id   = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name       = Column(String, nullable=False)
    email      = Column(String, nullable=True)
    phone      = Column(String, nullable=True)
    deleted_at = Column(DateTime, nullable=True)
