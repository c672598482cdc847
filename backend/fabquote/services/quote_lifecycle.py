from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from ..core.config import settings
from ..models.quote import Quote, QuoteStatus
from ..utils.errors import InvalidTransitionError

logger = logging.getLogger(__name__)

INITIAL_STATUS = QuoteStatus.DRAFT


def parse_status(value: Any) -> QuoteStatus:
    """Return the ``QuoteStatus`` for ``value`` or raise ``InvalidTransitionError``."""
    if isinstance(value, QuoteStatus):
        return value
    try:
        return QuoteStatus(str(value).strip().upper())
    except ValueError:
        raise InvalidTransitionError(
            "Invalid status",
            {"status": f"must be one of {', '.join(s.value for s in QuoteStatus)}"},
        )


class QuoteLifecycle:
    """Status state machine for quotes.

    ``allowed_transitions`` maps a status to the statuses reachable from it.
    ``None`` keeps the permissive behaviour where any enumerated status may be
    set from any other, including itself.
    """

    def __init__(self, allowed_transitions: Optional[Mapping[Any, Any]] = None):
        self._allowed: Optional[dict[QuoteStatus, frozenset[QuoteStatus]]] = None
        if allowed_transitions is not None:
            self._allowed = {
                parse_status(source): frozenset(parse_status(t) for t in targets)
                for source, targets in allowed_transitions.items()
            }

    @classmethod
    def from_settings(cls) -> "QuoteLifecycle":
        return cls(settings.QUOTE_STATUS_TRANSITIONS)

    @property
    def is_permissive(self) -> bool:
        return self._allowed is None

    def allowed_targets(self, current: QuoteStatus) -> frozenset[QuoteStatus]:
        if self._allowed is None:
            return frozenset(QuoteStatus)
        return self._allowed.get(current, frozenset())

    def can_transition(self, current: QuoteStatus, target: QuoteStatus) -> bool:
        return target in self.allowed_targets(current)

    def transition(self, quote: Quote, target: Any) -> dict:
        """Move ``quote`` to ``target`` in memory and return the audit details.

        The caller owns the session and commits the change.
        """
        new_status = parse_status(target)
        old_status = QuoteStatus(quote.status)
        if not self.can_transition(old_status, new_status):
            raise InvalidTransitionError(
                f"Cannot change status from {old_status.value} to {new_status.value}",
                {"status": "transition_not_allowed"},
            )
        quote.status = new_status
        quote.updated_at = datetime.utcnow()
        logger.info(
            "Quote %s status %s -> %s", quote.id, old_status.value, new_status.value
        )
        return {"old_status": old_status.value, "new_status": new_status.value}
