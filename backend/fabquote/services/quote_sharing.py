from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..crud import crud_quote
from ..models.quote import Quote, QuoteStatus
from ..schemas.quote import PublicResponseIn
from ..utils.errors import ConflictError, NotFoundError
from . import audit as audit_events
from .audit import AuditSink, NullAuditSink, RequestMetadata
from .quote_lifecycle import QuoteLifecycle

logger = logging.getLogger(__name__)

_RESPONSE_STATUS = {
    "accept": QuoteStatus.ACCEPTED,
    "reject": QuoteStatus.REJECTED,
}


class QuoteSharingGateway:
    """Unauthenticated access to a single quote through its public identifier.

    Unknown and soft-deleted tokens fail with the same ``NotFoundError``.
    """

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

    def _require(self, public_id: str) -> Quote:
        quote = crud_quote.get_quote_by_public_id(self.db, public_id)
        if quote is None:
            logger.warning("Public quote lookup missed")
            raise NotFoundError("Quote not found")
        return quote

    def get_by_public_id(self, public_id: str) -> dict:
        return crud_quote.public_view(self.db, self._require(public_id))

    def update_public_response(self, public_id: str, response: PublicResponseIn) -> dict:
        quote = self._require(public_id)
        if quote.status != QuoteStatus.SENT:
            raise ConflictError(
                "Quote is not awaiting a response",
                {"status": "not_sent"},
            )
        with crud_quote.atomic(self.db):
            change = self.lifecycle.transition(quote, _RESPONSE_STATUS[response.action])
            quote.response_message = response.message
            quote.responded_at = datetime.utcnow()
        logger.info("Recorded public %s for quote %s", response.action, quote.id)
        audit_events.emit(
            self.audit,
            quote.owner_id,
            "PUBLIC_RESPONSE",
            {
                "quote_id": quote.id,
                "old_values": {"status": change["old_status"]},
                "new_values": {"status": change["new_status"]},
                "message": response.message,
            },
            self.request_metadata,
        )
        return crud_quote.public_view(self.db, quote)
