from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, model_validator
from pydantic.alias_generators import to_camel

from ..models.quote import QuoteStatus

# Serialized as a JSON number; stored and computed as Decimal.
Money = Annotated[Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")]

QuoteSortField = Literal["title", "status", "total", "validUntil", "createdAt"]

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CamelInput(BaseModel):
    """Request bodies: camelCase keys, unknown keys rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


# ─── Input ──────────────────────────────────────────────────────────────────


class QuoteItemIn(CamelInput):
    product_ref: Optional[int] = Field(default=None, gt=0)
    service_ref: Optional[int] = Field(default=None, gt=0)
    description: Optional[str] = Field(default=None, max_length=1000)
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0, le=Decimal("999999999.99"))

    @model_validator(mode="after")
    def exactly_one_catalog_ref(self) -> "QuoteItemIn":
        if (self.product_ref is None) == (self.service_ref is None):
            raise ValueError("exactly one of productRef or serviceRef is required")
        return self


class QuoteCreate(CamelInput):
    client_id: int = Field(gt=0)
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    valid_until: Optional[date] = None
    discount_amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2, le=Decimal("999999.99"))
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2, le=100)
    notes: Optional[str] = Field(default=None, max_length=1000)
    items: Optional[List[QuoteItemIn]] = None


class QuoteUpdate(CamelInput):
    """Partial update; only keys present in the body are applied.

    ``items`` present (even as an empty list) replaces every line item.
    """

    client_id: Optional[int] = Field(default=None, gt=0)
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    valid_until: Optional[date] = None
    discount_amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2, le=Decimal("999999.99"))
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2, le=100)
    notes: Optional[str] = Field(default=None, max_length=1000)
    items: Optional[List[QuoteItemIn]] = None

    @model_validator(mode="after")
    def required_fields_not_null(self) -> "QuoteUpdate":
        for name in ("client_id", "title", "items"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self


class QuoteStatusUpdate(CamelInput):
    # Plain string so unknown values are reported as an invalid status.
    status: str = Field(min_length=1, max_length=32)


class PublicResponseIn(CamelInput):
    action: Literal["accept", "reject"]
    message: Optional[str] = Field(default=None, max_length=1000)


class QuoteListFilters(CamelModel):
    page: int = 1
    limit: int = 10
    search: Optional[str] = None
    client_id: Optional[int] = None
    status: Optional[QuoteStatus] = None
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    sort: QuoteSortField = "createdAt"
    order: Literal["asc", "desc"] = "desc"


# ─── Output ─────────────────────────────────────────────────────────────────


class QuoteItemRead(CamelModel):
    id: str
    product_ref: Optional[int] = None
    service_ref: Optional[int] = None
    product_name: Optional[str] = None
    service_name: Optional[str] = None
    description: Optional[str] = None
    quantity: int
    unit_price: Money
    total: Money


class QuoteSummary(CamelModel):
    id: str
    public_id: str
    owner_id: int
    client_id: int
    title: str
    description: Optional[str] = None
    status: QuoteStatus
    valid_until: Optional[date] = None
    subtotal: Money
    discount_amount: Optional[Money] = None
    discount_percentage: Optional[Money] = None
    total: Money
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    owner_name: Optional[str] = None


class QuoteRead(QuoteSummary):
    client_phone: Optional[str] = None
    response_message: Optional[str] = None
    responded_at: Optional[datetime] = None
    items: List[QuoteItemRead] = []


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class QuoteListData(CamelModel):
    quotes: List[QuoteSummary]
    pagination: Pagination


class PublicClientContact(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class PublicQuoteItem(CamelModel):
    product_name: Optional[str] = None
    service_name: Optional[str] = None
    description: Optional[str] = None
    quantity: int
    unit_price: Money
    total: Money


class PublicQuoteRead(CamelModel):
    public_id: str
    title: str
    description: Optional[str] = None
    status: QuoteStatus
    valid_until: Optional[date] = None
    subtotal: Money
    discount_amount: Optional[Money] = None
    discount_percentage: Optional[Money] = None
    total: Money
    notes: Optional[str] = None
    response_message: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: datetime
    client: PublicClientContact
    items: List[PublicQuoteItem] = []


class PublicLinkRead(CamelModel):
    public_id: str
    url: str


class MonthlyQuoteStats(CamelModel):
    month: str
    count: int
    total_value: Money


class QuoteStats(CamelModel):
    total_quotes: int = 0
    draft_quotes: int = 0
    sent_quotes: int = 0
    accepted_quotes: int = 0
    rejected_quotes: int = 0
    expired_quotes: int = 0
    average_value: Money = Decimal("0")
    accepted_value: Money = Decimal("0")
    monthly: List[MonthlyQuoteStats] = []
