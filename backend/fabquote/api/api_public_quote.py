from fastapi import APIRouter, Depends
import logging

from .. import schemas
from ..services.quote_sharing import QuoteSharingGateway
from .dependencies import get_sharing_gateway

# No authentication on these routes; rate limiting is applied by the edge proxy.
router = APIRouter(tags=["public-quotes"])
logger = logging.getLogger(__name__)


@router.get(
    "/quotes/public/{public_id}",
    response_model=schemas.ApiResponse[schemas.PublicQuoteRead],
)
def read_public_quote(
    public_id: str,
    gateway: QuoteSharingGateway = Depends(get_sharing_gateway),
):
    return {"success": True, "data": gateway.get_by_public_id(public_id)}


@router.put(
    "/quotes/public/{public_id}/response",
    response_model=schemas.ApiResponse[schemas.PublicQuoteRead],
)
def respond_to_public_quote(
    public_id: str,
    payload: schemas.PublicResponseIn,
    gateway: QuoteSharingGateway = Depends(get_sharing_gateway),
):
    quote = gateway.update_public_response(public_id, payload)
    return {"success": True, "data": quote, "message": "Response recorded"}
