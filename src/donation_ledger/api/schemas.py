from pydantic import BaseModel

from donation_ledger.models.donation import RecentSupporterView, SummaryView

class WebhookResponse(BaseModel):
    ok: bool = True
    ignored: bool | None = None

class ErrorResponse(BaseModel):
    error: str

__all__ = ["WebhookResponse", "ErrorResponse", "RecentSupporterView", "SummaryView"]
