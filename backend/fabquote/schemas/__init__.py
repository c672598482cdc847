from .quote import (
    ApiResponse,
    Money,
    QuoteItemIn,
    QuoteCreate,
    QuoteUpdate,
    QuoteStatusUpdate,
    PublicResponseIn,
    QuoteListFilters,
    QuoteItemRead,
    QuoteSummary,
    QuoteRead,
    Pagination,
    QuoteListData,
    PublicClientContact,
    PublicQuoteItem,
    PublicQuoteRead,
    PublicLinkRead,
    MonthlyQuoteStats,
    QuoteStats,
)

__all__ = [
    "ApiResponse",
    "Money",
    "QuoteItemIn",
    "QuoteCreate",
    "QuoteUpdate",
    "QuoteStatusUpdate",
    "PublicResponseIn",
    "QuoteListFilters",
    "QuoteItemRead",
    "QuoteSummary",
    "QuoteRead",
    "Pagination",
    "QuoteListData",
    "PublicClientContact",
    "PublicQuoteItem",
    "PublicQuoteRead",
    "PublicLinkRead",
    "MonthlyQuoteStats",
    "QuoteStats",
]
