from sqlalchemy import Column, ForeignKey, Integer, Numeric, String

from .base import BaseModel


class Product(BaseModel):
    __tablename__ = "products"

    id       = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name     = Column(String, nullable=False)
    price    = Column(Numeric(12, 2), nullable=False, default=0)


class Service(BaseModel):
    __tablename__ = "services"

    id       = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name     = Column(String, nullable=False)
    price    = Column(Numeric(12, 2), nullable=False, default=0)
