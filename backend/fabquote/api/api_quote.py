from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
import logging

from .. import schemas
from ..core.config import settings
from ..models.quote import QuoteStatus
from ..models.user import User
from ..schemas.quote import QuoteSortField
from ..services.quote_composer import QuoteComposer
from ..utils import error_response
from .dependencies import get_current_user, get_quote_composer

router = APIRouter(tags=["quotes"])
logger = logging.getLogger(__name__)


def quote_list_filters(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.QUOTE_PAGE_SIZE, ge=1, le=settings.QUOTE_MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, max_length=255),
    client_id: Optional[int] = Query(None, alias="clientId", gt=0),
    status_filter: Optional[QuoteStatus] = Query(None, alias="status"),
    valid_from: Optional[date] = Query(None, alias="validFrom"),
    valid_to: Optional[date] = Query(None, alias="validTo"),
    sort: QuoteSortField = Query("createdAt"),
    order: str = Query("desc"),
) -> schemas.QuoteListFilters:
    normalized_order = order.strip().lower()
    if normalized_order not in ("asc", "desc"):
        raise error_response("Invalid parameters", {"order": "must be asc or desc"})
    return schemas.QuoteListFilters(
        page=page,
        limit=limit,
        search=(search or "").strip() or None,
        client_id=client_id,
        status=status_filter,
        valid_from=valid_from,
        valid_to=valid_to,
        sort=sort,
        order=normalized_order,
    )


@router.post(
    "/quotes",
    response_model=schemas.ApiResponse[schemas.QuoteRead],
    status_code=status.HTTP_201_CREATED,
)
def create_quote(
    quote_in: schemas.QuoteCreate,
    current_user: User = Depends(get_current_user),
    composer: QuoteComposer = Depends(get_quote_composer),
):
    quote = composer.create(current_user.id, quote_in)
    return {"success": True, "data": quote, "message": "Quote created"}


@router.get("/quotes", response_model=schemas.ApiResponse[schemas.QuoteListData])
def list_quotes(
    filters: schemas.QuoteListFilters = Depends(quote_list_filters),
    current_user: User = Depends(get_current_user),
    composer: QuoteComposer = Depends(get_quote_composer),
):
    return {"success": True, "data": composer.list_quotes(current_user.id, filters)}


@router.get("/quotes/stats", response_model=schemas.ApiResponse[schemas.QuoteStats])
def quote_stats(
    current_user: User = Depends(get_current_user),
    composer: QuoteComposer = Depends(get_quote_composer),
):
    return {"success": True, "data": composer.stats(current_user.id)}


@router.get("/quotes/{quote_id}", response_model=schemas.ApiResponse[schemas.QuoteRead])
def read_quote(
    quote_id: str,
    current_user: User = Depends(get_current_user),
    composer: QuoteComposer = Depends(get_quote_composer),
):
    return {"success": True, "data": composer.get(current_user.id, quote_id)}


@router.put("/quotes/{quote_id}", response_model=schemas.ApiResponse[schemas.QuoteRead])
def update_quote(
    quote_id: str,
    quote_in: schemas.QuoteUpdate,
    current_user: User = Depends(get_current_user),
    composer: QuoteComposer = Depends(get_quote_composer),
):
    quote = composer.update(current_user.id, quote_id, quote_in)
    return {"success": True, "data": quote, "message": "Quote updated"}


@router.delete("/quotes/{quote_id}", response_model=schemas.ApiResponse[dict])
def delete_quote(
    quote_id: str,
    current_user: User = Depends(get_current_user),
    composer: QuoteComposer = Depends(get_quote_composer),
):
    composer.delete(current_user.id, quote_id)
    return {"success": True, "message": "Quote deleted"}


@router.api_route(
    "/quotes/{quote_id}/status",
    methods=["PUT", "PATCH"],
    response_model=schemas.ApiResponse[schemas.QuoteRead],
)
def update_quote_status(
    quote_id: str,
    payload: schemas.QuoteStatusUpdate,
    current_user: User = Depends(get_current_user),
    composer: QuoteComposer = Depends(get_quote_composer),
):
    quote = composer.change_status(current_user.id, quote_id, payload.status)
    return {"success": True, "data": quote, "message": "Quote status updated"}


@router.post(
    "/quotes/{quote_id}/duplicate",
    response_model=schemas.ApiResponse[schemas.QuoteRead],
    status_code=status.HTTP_201_CREATED,
)
def duplicate_quote(
    quote_id: str,
    current_user: User = Depends(get_current_user),
    composer: QuoteComposer = Depends(get_quote_composer),
):
    quote = composer.duplicate(current_user.id, quote_id)
    return {"success": True, "data": quote, "message": "Quote duplicated"}


@router.post(
    "/quotes/{quote_id}/public-link",
    response_model=schemas.ApiResponse[schemas.PublicLinkRead],
)
def quote_public_link(
    quote_id: str,
    current_user: User = Depends(get_current_user),
    composer: QuoteComposer = Depends(get_quote_composer),
):
    return {"success": True, "data": composer.public_link(current_user.id, quote_id)}
