"""Audit sinks for quote actions.

Emission is best-effort: :func:`emit` never raises into the operation that
produced the event, and :class:`BackgroundAuditSink` defers the write until
after the response has been sent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, ContextManager, Optional, Protocol

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..models.audit_log import AuditLog
from ..utils.json import to_jsonable

logger = logging.getLogger(__name__)

QUOTES_MODULE = "quotes"


@dataclass(frozen=True)
class RequestMetadata:
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class AuditSink(Protocol):
    def log(
        self,
        owner_id: Optional[int],
        action: str,
        module: str = QUOTES_MODULE,
        details: Optional[dict] = None,
        request_metadata: Optional[RequestMetadata] = None,
    ) -> None:
        ...


class NullAuditSink:
    def log(self, owner_id, action, module=QUOTES_MODULE, details=None, request_metadata=None) -> None:
        return None


class DatabaseAuditSink:
    """Write each event to ``audit_logs`` using its own short-lived session."""

    def __init__(self, session_factory: Callable[[], ContextManager[Session]] = get_db_session):
        self._session_factory = session_factory

    def log(self, owner_id, action, module=QUOTES_MODULE, details=None, request_metadata=None) -> None:
        meta = request_metadata or RequestMetadata()
        with self._session_factory() as db:
            db.add(
                AuditLog(
                    user_id=owner_id,
                    action=action,
                    module=module,
                    details=to_jsonable(details) if details is not None else None,
                    ip_address=meta.ip_address,
                    user_agent=(meta.user_agent or "")[:512] or None,
                )
            )
            db.commit()


class BackgroundAuditSink:
    """Schedule writes on FastAPI ``BackgroundTasks`` so they run after the response."""

    def __init__(self, background_tasks: BackgroundTasks, inner: AuditSink):
        self._tasks = background_tasks
        self._inner = inner

    def log(self, owner_id, action, module=QUOTES_MODULE, details=None, request_metadata=None) -> None:
        self._tasks.add_task(
            _safe_log, self._inner, owner_id, action, module, details, request_metadata
        )


def _safe_log(
    sink: AuditSink,
    owner_id: Optional[int],
    action: str,
    module: str,
    details: Optional[dict],
    request_metadata: Optional[RequestMetadata],
) -> None:
    try:
        sink.log(owner_id, action, module, details, request_metadata)
    except Exception:  # best effort only
        logger.exception("Audit log failed; owner_id=%s action=%s module=%s", owner_id, action, module)


def emit(
    sink: Optional[AuditSink],
    owner_id: Optional[int],
    action: str,
    details: Optional[dict[str, Any]] = None,
    request_metadata: Optional[RequestMetadata] = None,
    module: str = QUOTES_MODULE,
) -> None:
    """Hand an event to ``sink``, logging and discarding any failure."""
    if sink is None:
        return
    _safe_log(sink, owner_id, action, module, details, request_metadata)
