import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mangum import Mangum

from donation_ledger.api import routers
from donation_ledger.core.config import settings
from donation_ledger.core.exceptions import DonationLedgerError
from donation_ledger.core.logging_config import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Donation Ledger API",
    root_path=settings.API_ROOT_PATH
)

# The summary is read by a browser widget on another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

@app.exception_handler(DonationLedgerError)
async def donation_ledger_error_handler(request: Request, exc: DonationLedgerError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

@app.get("/")
def read_root():
    return {"message": "Welcome to the Donation Ledger API"}


app.include_router(routers.router)

handler = Mangum(app)
