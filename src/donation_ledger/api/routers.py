from fastapi import (
    APIRouter,
    Request,
    Depends,
    Query
)
from fastapi.responses import JSONResponse
from typing import Optional
import logging

from donation_ledger.core.dependencies import get_donation_ledger
from donation_ledger.core.exceptions import DonationLedgerError
from donation_ledger.services.donation_ledger import DonationLedger
from donation_ledger.api.schemas import ErrorResponse, SummaryView, WebhookResponse

router = APIRouter()
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    401: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

@router.post(
    "/webhooks/kofi",
    response_model=WebhookResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES
)
async def handle_kofi_webhook(
    request: Request,
    ledger: DonationLedger = Depends(get_donation_ledger)
):
    """
    Receives donation webhooks, verifies the shared token and folds the
    donation into the running summary.
    """
    try:
        result = ledger.ingest_body(await request.body(), request.headers.get("content-type"))
    except DonationLedgerError:
        raise
    except Exception as e:
        logger.exception(f"Webhook internal error: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})

    if not result.accepted:
        return WebhookResponse(ok=True, ignored=True)
    return WebhookResponse(ok=True)

@router.get(
    "/donations/summary",
    response_model=SummaryView,
    responses={500: {"model": ErrorResponse}}
)
def get_donation_summary(
    currency: Optional[str] = Query(default=None),
    ledger: DonationLedger = Depends(get_donation_ledger)
):
    try:
        return ledger.snapshot(currency)
    except Exception as e:
        logger.exception(f"Summary internal error: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
