from .user import User
from .client import Client
from .catalog import Product, Service
from .quote import Quote, QuoteItem, QuoteStatus
from .audit_log import AuditLog

__all__ = [
    "User",
    "Client",
    "Product",
    "Service",
    "Quote",
    "QuoteItem",
    "QuoteStatus",
    "AuditLog",
]
