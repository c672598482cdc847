"""Quote create/update/duplicate/delete as atomic units of work.

Each public method validates ownership, runs the pricing engine or lifecycle
as needed, commits once, and only then hands an audit event to the injected
sink. Audit failures never affect the result.
"""

from __future__ import annotations

import logging
from datetime import datetime
from math import ceil
from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..crud import crud_quote
from ..models.quote import Quote
from ..schemas.quote import QuoteCreate, QuoteListFilters, QuoteUpdate
from ..utils.errors import QuoteValidationError
from . import audit as audit_events
from .audit import AuditSink, NullAuditSink, RequestMetadata
from .quote_lifecycle import INITIAL_STATUS, QuoteLifecycle, parse_status
from .quote_pricing import apply_discount, recalculate

logger = logging.getLogger(__name__)

_DISCOUNT_FIELDS = ("discount_amount", "discount_percentage")
_TITLE_MAX = 255


class QuoteComposer:
    def __init__(
        self,
        db: Session,
        audit: Optional[AuditSink] = None,
        lifecycle: Optional[QuoteLifecycle] = None,
        request_metadata: Optional[RequestMetadata] = None,
    ):
        self.db = db
        self.audit = audit or NullAuditSink()
        self.lifecycle = lifecycle or QuoteLifecycle.from_settings()
        self.request_metadata = request_metadata

    # ─── reads ──────────────────────────────────────────────────────────────

    def get(self, owner_id: int, quote_id: str) -> dict:
        quote = crud_quote.require_quote(self.db, owner_id, quote_id)
        return crud_quote.hydrate(self.db, quote)

    def list_quotes(self, owner_id: int, filters: QuoteListFilters) -> dict:
        if filters.valid_from and filters.valid_to and filters.valid_from > filters.valid_to:
            raise QuoteValidationError(
                "Invalid parameters", {"validFrom": "must not be after validTo"}
            )
        quotes, total = crud_quote.list_quotes(self.db, owner_id, filters)
        total_pages = ceil(total / filters.limit) if total else 0
        return {
            "quotes": quotes,
            "pagination": {
                "page": filters.page,
                "limit": filters.limit,
                "total": total,
                "total_pages": total_pages,
                "has_next": filters.page < total_pages,
                "has_prev": filters.page > 1,
            },
        }

    def stats(self, owner_id: int) -> dict:
        return crud_quote.quote_stats(self.db, owner_id)

    # ─── writes ─────────────────────────────────────────────────────────────

    def create(self, owner_id: int, quote_in: QuoteCreate) -> dict:
        with crud_quote.atomic(self.db):
            crud_quote.require_client(self.db, owner_id, quote_in.client_id)
            quote = crud_quote.add_quote(
                self.db,
                owner_id=owner_id,
                client_id=quote_in.client_id,
                title=quote_in.title,
                description=quote_in.description,
                valid_until=quote_in.valid_until,
                status=INITIAL_STATUS,
                subtotal=0,
                discount_amount=quote_in.discount_amount,
                discount_percentage=quote_in.discount_percentage,
                total=0,
                notes=quote_in.notes,
            )
            if quote_in.items:
                crud_quote.insert_items(self.db, quote, quote_in.items)
                self._recalculate(quote)
        logger.info("Created quote %s for owner %s with %s items", quote.id, owner_id, len(quote.items))
        result = crud_quote.hydrate(self.db, quote)
        self._emit(owner_id, "CREATE", {"quote_id": quote.id, "new_values": result})
        return result

    def update(self, owner_id: int, quote_id: str, quote_in: QuoteUpdate) -> dict:
        quote = crud_quote.require_quote(self.db, owner_id, quote_id)
        before = crud_quote.snapshot(quote)
        changes = quote_in.model_dump(exclude_unset=True, exclude={"items"})
        replace_items = "items" in quote_in.model_fields_set

        with crud_quote.atomic(self.db):
            new_client = changes.get("client_id")
            if new_client is not None and new_client != quote.client_id:
                crud_quote.require_client(self.db, owner_id, new_client)
            for key, value in changes.items():
                setattr(quote, key, value)
            if replace_items:
                crud_quote.replace_items(self.db, quote, quote_in.items or [])
                self._recalculate(quote)
            elif any(field in changes for field in _DISCOUNT_FIELDS):
                quote.total = apply_discount(
                    quote.subtotal, quote.discount_percentage, quote.discount_amount
                )
            quote.updated_at = datetime.utcnow()
        logger.info("Updated quote %s for owner %s (items replaced=%s)", quote_id, owner_id, replace_items)
        result = crud_quote.hydrate(self.db, quote)
        self._emit(
            owner_id,
            "UPDATE",
            {"quote_id": quote_id, "old_values": before, "new_values": result},
        )
        return result

    def change_status(self, owner_id: int, quote_id: str, status: str) -> dict:
        target = parse_status(status)
        quote = crud_quote.require_quote(self.db, owner_id, quote_id)
        with crud_quote.atomic(self.db):
            change = self.lifecycle.transition(quote, target)
        result = crud_quote.hydrate(self.db, quote)
        self._emit(
            owner_id,
            "STATUS_UPDATE",
            {
                "quote_id": quote_id,
                "old_values": {"status": change["old_status"]},
                "new_values": {"status": change["new_status"]},
            },
        )
        return result

    def duplicate(self, owner_id: int, quote_id: str) -> dict:
        source = crud_quote.require_quote(self.db, owner_id, quote_id)
        with crud_quote.atomic(self.db):
            copy = crud_quote.add_quote(
                self.db,
                owner_id=owner_id,
                client_id=source.client_id,
                title=self._copy_title(source.title),
                description=source.description,
                valid_until=None,
                status=INITIAL_STATUS,
                subtotal=source.subtotal,
                discount_amount=source.discount_amount,
                discount_percentage=source.discount_percentage,
                total=source.total,
                notes=source.notes,
            )
            crud_quote.clone_items(self.db, source.items, copy)
        logger.info("Duplicated quote %s into %s for owner %s", quote_id, copy.id, owner_id)
        result = crud_quote.hydrate(self.db, copy)
        self._emit(owner_id, "DUPLICATE", {"quote_id": copy.id, "duplicated_from": quote_id})
        return result

    def delete(self, owner_id: int, quote_id: str) -> None:
        quote = crud_quote.require_quote(self.db, owner_id, quote_id)
        before = crud_quote.hydrate(self.db, quote)
        with crud_quote.atomic(self.db):
            crud_quote.soft_delete(self.db, quote)
        logger.info("Soft-deleted quote %s for owner %s", quote_id, owner_id)
        self._emit(owner_id, "DELETE", {"quote_id": quote_id, "old_values": before})

    def public_link(self, owner_id: int, quote_id: str) -> dict:
        quote = crud_quote.require_quote(self.db, owner_id, quote_id)
        link = {
            "public_id": quote.public_id,
            "url": f"{settings.FRONTEND_URL}/quotes/public/{quote.public_id}",
        }
        self._emit(owner_id, "GENERATE_PUBLIC_LINK", {"quote_id": quote_id})
        return link

    # ─── helpers ────────────────────────────────────────────────────────────

    def _recalculate(self, quote: Quote) -> None:
        totals = recalculate(quote.items, quote.discount_percentage, quote.discount_amount)
        quote.subtotal = totals.subtotal
        quote.total = totals.total

    @staticmethod
    def _copy_title(title: str) -> str:
        suffix = settings.QUOTE_COPY_SUFFIX
        return title[: _TITLE_MAX - len(suffix)] + suffix

    def _emit(self, owner_id: int, action: str, details: dict) -> None:
        audit_events.emit(self.audit, owner_id, action, details, self.request_metadata)
