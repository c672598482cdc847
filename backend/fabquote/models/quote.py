import enum
import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum as SQLAlchemyEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import BaseModel


def _new_id() -> str:
    return str(uuid.uuid4())


class QuoteStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class Quote(BaseModel):
    __tablename__ = "quotes"

    id = Column(String(36), primary_key=True, default=_new_id)
    public_id = Column(String(36), unique=True, index=True, nullable=False, default=_new_id)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        SQLAlchemyEnum(
            QuoteStatus,
            name="quotestatus",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=QuoteStatus.DRAFT,
        index=True,
    )
    valid_until = Column(Date, nullable=True, index=True)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=True)
    discount_percentage = Column(Numeric(5, 2), nullable=True)
    total = Column(Numeric(12, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    # Counterparty answer recorded through the public link
    response_message = Column(Text, nullable=True)
    responded_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True, index=True)

    items = relationship(
        "QuoteItem",
        back_populates="quote",
        order_by="QuoteItem.position",
        cascade="all, delete-orphan",
    )
    client = relationship("Client")
    owner = relationship("User")

    __table_args__ = (
        CheckConstraint("total >= 0", name="ck_quotes_total_non_negative"),
    )


class QuoteItem(BaseModel):
    __tablename__ = "quote_items"

    id = Column(String(36), primary_key=True, default=_new_id)
    quote_id = Column(String(36), ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    # Catalog references are not foreign keys: an unresolved reference is
    # rendered with a null display name rather than rejected.
    product_id = Column(Integer, nullable=True, index=True)
    service_id = Column(Integer, nullable=True, index=True)
    description = Column(Text, nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)

    quote = relationship("Quote", back_populates="items")

    __table_args__ = (
        CheckConstraint(
            "(product_id IS NULL) <> (service_id IS NULL)",
            name="ck_quote_items_single_catalog_ref",
        ),
        CheckConstraint("quantity > 0", name="ck_quote_items_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_quote_items_unit_price_non_negative"),
    )
