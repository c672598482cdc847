"""Quote repository: owner-scoped queries, item writes and hydration.

Every quote read goes through :func:`live_criteria`, the single predicate that
hides soft-deleted quotes and scopes rows to their owner. Items are only ever
reached through their parent quote, so they inherit the same filter.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Iterator, Optional, Sequence

from sqlalchemy import case, extract, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from .. import models
from ..models.quote import Quote, QuoteItem, QuoteStatus
from ..schemas.quote import QuoteItemIn, QuoteListFilters
from ..services.quote_pricing import line_total, to_money
from ..utils.errors import NotFoundError, RepositoryError

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "title": Quote.title,
    "status": Quote.status,
    "total": Quote.total,
    "validUntil": Quote.valid_until,
    "createdAt": Quote.created_at,
}

# Scalar columns carried into audit snapshots.
SNAPSHOT_FIELDS = (
    "id",
    "public_id",
    "owner_id",
    "client_id",
    "title",
    "description",
    "status",
    "valid_until",
    "subtotal",
    "discount_amount",
    "discount_percentage",
    "total",
    "notes",
    "created_at",
    "updated_at",
)


def live_criteria(owner_id: Optional[int] = None) -> list:
    criteria = [Quote.deleted_at.is_(None)]
    if owner_id is not None:
        criteria.append(Quote.owner_id == owner_id)
    return criteria


def live_quotes(db: Session, owner_id: Optional[int] = None):
    return db.query(Quote).filter(*live_criteria(owner_id))


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Commit everything done inside the block, or nothing.

    Storage errors are logged and re-raised as ``RepositoryError`` so driver
    text never reaches the caller.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Quote transaction rolled back: %s", exc, exc_info=True)
        raise RepositoryError("Unable to save quote") from exc
    except Exception:
        db.rollback()
        raise


def get_quote(db: Session, owner_id: int, quote_id: str) -> Optional[Quote]:
    return (
        live_quotes(db, owner_id)
        .options(selectinload(Quote.items))
        .filter(Quote.id == quote_id)
        .first()
    )


def require_quote(db: Session, owner_id: int, quote_id: str) -> Quote:
    quote = get_quote(db, owner_id, quote_id)
    if quote is None:
        logger.warning("Quote %s not found for owner %s", quote_id, owner_id)
        raise NotFoundError("Quote not found", {"quote_id": "not_found"})
    return quote


def get_quote_by_public_id(db: Session, public_id: str) -> Optional[Quote]:
    return (
        live_quotes(db)
        .options(selectinload(Quote.items))
        .filter(Quote.public_id == public_id)
        .first()
    )


def get_client(db: Session, owner_id: int, client_id: int) -> Optional[models.Client]:
    return (
        db.query(models.Client)
        .filter(
            models.Client.id == client_id,
            models.Client.owner_id == owner_id,
            models.Client.deleted_at.is_(None),
        )
        .first()
    )


def require_client(db: Session, owner_id: int, client_id: int) -> models.Client:
    client = get_client(db, owner_id, client_id)
    if client is None:
        logger.warning("Client %s not found for owner %s", client_id, owner_id)
        raise NotFoundError("Client not found", {"client_id": "not_found"})
    return client


def add_quote(db: Session, **fields) -> Quote:
    quote = Quote(**fields)
    db.add(quote)
    db.flush()
    return quote


def build_item(item: QuoteItemIn, position: int) -> QuoteItem:
    unit_price = to_money(item.unit_price)
    return QuoteItem(
        position=position,
        product_id=item.product_ref,
        service_id=item.service_ref,
        description=item.description,
        quantity=item.quantity,
        unit_price=unit_price,
        total=line_total(item.quantity, unit_price),
    )


def insert_items(db: Session, quote: Quote, items: Sequence[QuoteItemIn]) -> list[QuoteItem]:
    start = len(quote.items)
    rows = [build_item(item, start + idx) for idx, item in enumerate(items)]
    quote.items.extend(rows)
    db.flush()
    return rows


def replace_items(db: Session, quote: Quote, items: Sequence[QuoteItemIn]) -> list[QuoteItem]:
    """Delete every existing item of ``quote`` and insert ``items`` in their place."""
    quote.items.clear()
    db.flush()
    return insert_items(db, quote, items)


def clone_items(db: Session, source: Iterable[QuoteItem], target: Quote) -> list[QuoteItem]:
    rows = [
        QuoteItem(
            position=item.position,
            product_id=item.product_id,
            service_id=item.service_id,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total=item.total,
        )
        for item in source
    ]
    target.items.extend(rows)
    db.flush()
    return rows


def soft_delete(db: Session, quote: Quote) -> None:
    now = datetime.utcnow()
    quote.deleted_at = now
    quote.updated_at = now
    db.flush()


def catalog_names(
    db: Session,
    owner_id: int,
    product_ids: Iterable[int],
    service_ids: Iterable[int],
) -> tuple[dict[int, str], dict[int, str]]:
    """Resolve display names for catalog refs owned by ``owner_id``.

    Unknown or foreign ids are simply absent from the result.
    """
    product_ids = {pid for pid in product_ids if pid is not None}
    service_ids = {sid for sid in service_ids if sid is not None}
    products: dict[int, str] = {}
    services: dict[int, str] = {}
    if product_ids:
        rows = (
            db.query(models.Product.id, models.Product.name)
            .filter(models.Product.id.in_(product_ids), models.Product.owner_id == owner_id)
            .all()
        )
        products = {pid: name for pid, name in rows}
    if service_ids:
        rows = (
            db.query(models.Service.id, models.Service.name)
            .filter(models.Service.id.in_(service_ids), models.Service.owner_id == owner_id)
            .all()
        )
        services = {sid: name for sid, name in rows}
    return products, services


def _item_rows(db: Session, quote: Quote) -> list[dict]:
    products, services = catalog_names(
        db,
        quote.owner_id,
        (item.product_id for item in quote.items),
        (item.service_id for item in quote.items),
    )
    return [
        {
            "id": item.id,
            "product_ref": item.product_id,
            "service_ref": item.service_id,
            "product_name": products.get(item.product_id),
            "service_name": services.get(item.service_id),
            "description": item.description,
            "quantity": item.quantity,
            "unit_price": item.unit_price,
            "total": item.total,
        }
        for item in quote.items
    ]


def snapshot(quote: Quote) -> dict:
    """Scalar state of ``quote`` for audit before/after payloads."""
    data = {}
    for name in SNAPSHOT_FIELDS:
        value = getattr(quote, name)
        if isinstance(value, QuoteStatus):
            value = value.value
        data[name] = value
    return data


def hydrate(db: Session, quote: Quote) -> dict:
    """Quote fields plus client/owner display fields and resolved items."""
    data = snapshot(quote)
    client = quote.client
    owner = quote.owner
    data.update(
        {
            "response_message": quote.response_message,
            "responded_at": quote.responded_at,
            "client_name": client.name if client else None,
            "client_email": client.email if client else None,
            "client_phone": client.phone if client else None,
            "owner_name": owner.name if owner else None,
            "items": _item_rows(db, quote),
        }
    )
    return data


def public_view(db: Session, quote: Quote) -> dict:
    """Fields needed to render a shared quote; no internal ids."""
    client = quote.client
    items = [
        {key: row[key] for key in ("product_name", "service_name", "description", "quantity", "unit_price", "total")}
        for row in _item_rows(db, quote)
    ]
    return {
        "public_id": quote.public_id,
        "title": quote.title,
        "description": quote.description,
        "status": quote.status,
        "valid_until": quote.valid_until,
        "subtotal": quote.subtotal,
        "discount_amount": quote.discount_amount,
        "discount_percentage": quote.discount_percentage,
        "total": quote.total,
        "notes": quote.notes,
        "response_message": quote.response_message,
        "responded_at": quote.responded_at,
        "created_at": quote.created_at,
        "client": {
            "name": client.name if client else None,
            "email": client.email if client else None,
            "phone": client.phone if client else None,
        },
        "items": items,
    }


def list_quotes(db: Session, owner_id: int, filters: QuoteListFilters) -> tuple[list[dict], int]:
    """Return one page of summary rows and the total match count."""
    query = (
        db.query(
            Quote,
            models.Client.name,
            models.Client.email,
            models.User.name,
        )
        .outerjoin(models.Client, models.Client.id == Quote.client_id)
        .outerjoin(models.User, models.User.id == Quote.owner_id)
        .filter(*live_criteria(owner_id))
    )
    if filters.search:
        query = query.filter(
            Quote.title.icontains(filters.search, autoescape=True)
            | Quote.description.icontains(filters.search, autoescape=True)
            | models.Client.name.icontains(filters.search, autoescape=True)
        )
    if filters.client_id is not None:
        query = query.filter(Quote.client_id == filters.client_id)
    if filters.status is not None:
        query = query.filter(Quote.status == filters.status)
    if filters.valid_from is not None:
        query = query.filter(Quote.valid_until >= filters.valid_from)
    if filters.valid_to is not None:
        query = query.filter(Quote.valid_until <= filters.valid_to)

    total = query.with_entities(func.count(Quote.id)).scalar() or 0

    column = SORT_COLUMNS[filters.sort]
    ordering = column.asc() if filters.order == "asc" else column.desc()
    rows = (
        query.order_by(ordering, Quote.id.asc())
        .offset((filters.page - 1) * filters.limit)
        .limit(filters.limit)
        .all()
    )
    summaries = []
    for quote, client_name, client_email, owner_name in rows:
        data = snapshot(quote)
        data.update(
            {
                "client_name": client_name,
                "client_email": client_email,
                "owner_name": owner_name,
            }
        )
        summaries.append(data)
    return summaries, int(total)


def quote_stats(db: Session, owner_id: int) -> dict:
    criteria = live_criteria(owner_id)
    counts = dict(
        db.query(Quote.status, func.count(Quote.id))
        .filter(*criteria)
        .group_by(Quote.status)
        .all()
    )
    average, accepted_value = (
        db.query(
            func.avg(Quote.total),
            func.sum(case((Quote.status == QuoteStatus.ACCEPTED, Quote.total), else_=0)),
        )
        .filter(*criteria)
        .one()
    )

    year = extract("year", Quote.created_at)
    month = extract("month", Quote.created_at)
    monthly_rows = (
        db.query(year, month, func.count(Quote.id), func.sum(Quote.total))
        .filter(*criteria)
        .group_by(year, month)
        .order_by(year.desc(), month.desc())
        .limit(12)
        .all()
    )

    def _count(status: QuoteStatus) -> int:
        return int(counts.get(status, 0) or 0)

    return {
        "total_quotes": sum(int(c or 0) for c in counts.values()),
        "draft_quotes": _count(QuoteStatus.DRAFT),
        "sent_quotes": _count(QuoteStatus.SENT),
        "accepted_quotes": _count(QuoteStatus.ACCEPTED),
        "rejected_quotes": _count(QuoteStatus.REJECTED),
        "expired_quotes": _count(QuoteStatus.EXPIRED),
        "average_value": to_money(average or Decimal("0")),
        "accepted_value": to_money(accepted_value or Decimal("0")),
        "monthly": [
            {
                "month": f"{int(y):04d}-{int(m):02d}",
                "count": int(c),
                "total_value": to_money(v or Decimal("0")),
            }
            for y, m, c, v in monthly_rows
        ],
    }
