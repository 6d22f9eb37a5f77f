import hmac
import logging
import math
from dataclasses import dataclass
from typing import Callable

from donation_ledger.core.clock import utc_now_iso
from donation_ledger.core.exceptions import AuthError, ConfigError
from donation_ledger.data_access.dynamodb import DynamoDataAccess
from donation_ledger.models.donation import (
    DonationRecord,
    DonationSummary,
    OriginalAmount,
    RecentSupporterView,
    SummaryView,
)
from donation_ledger.services.payload import decode_body, extract_donation, extract_token
from donation_ledger.services.rate_cache import RateCache

logger = logging.getLogger(__name__)


def round_display(amount: float) -> int:
    """Round half up to a whole unit, as Math.round does."""
    return int(math.floor(amount + 0.5))


@dataclass(frozen=True)
class IngestResult:
    accepted: bool
    record: DonationRecord | None = None


class DonationLedger:
    def __init__(
        self,
        data_access: DynamoDataAccess,
        rate_cache: RateCache,
        verification_token: str | None,
        reference_currency: str = "CHF",
        display_currencies: list[str] | None = None,
        default_display_currency: str = "JPY",
        clock: Callable[[], str] = utc_now_iso
    ):
        self.data_access = data_access
        self.rate_cache = rate_cache
        self.verification_token = verification_token
        self.reference_currency = reference_currency.upper()
        self.display_currencies = [c.upper() for c in (display_currencies or ["JPY", "EUR"])]
        self.default_display_currency = default_display_currency.upper()
        self.clock = clock

    def _load_summary(self) -> DonationSummary:
        return self.data_access.get_summary() or DonationSummary()

    def _require_secret(self) -> None:
        if not self.verification_token:
            raise ConfigError("KOFI_VERIFICATION_TOKEN missing")

    def _authenticate(self, payload: dict) -> None:
        self._require_secret()

        incoming = extract_token(payload)
        if incoming is None or not hmac.compare_digest(
            incoming.encode("utf-8"), self.verification_token.encode("utf-8")
        ):
            logger.warning(
                "Rejected webhook with invalid verification token.",
                extra={"event": "auth_rejected", "token_present": incoming is not None}
            )
            raise AuthError("Invalid verification token")

    def _to_reference(self, amount: float, currency: str) -> float:
        if currency == self.reference_currency:
            return amount

        rate = self.rate_cache.get_rates().get(currency)
        if rate and rate > 0:
            # rates are reference -> currency, so invert
            converted = amount / rate
            if math.isfinite(converted):
                return converted

        logger.warning(
            f"No usable {self.reference_currency}/{currency} rate; "
            f"storing {amount} as {self.reference_currency}.",
            extra={"event": "conversion_fallback", "currency": currency, "rate": rate}
        )
        return amount

    def ingest_body(self, body: bytes, content_type: str | None = None) -> IngestResult:
        """Decode a raw webhook body and ingest it; configuration is checked first."""
        self._require_secret()
        return self.ingest(decode_body(body, content_type))

    def ingest(self, payload: dict) -> IngestResult:
        self._authenticate(payload)

        now = self.clock()
        fields = extract_donation(payload, self.reference_currency, now)
        if fields.amount <= 0:
            logger.info(
                f"Ignoring donation with non-positive amount {fields.amount_raw!r}.",
                extra={"event": "donation_ignored"}
            )
            return IngestResult(accepted=False)

        record = DonationRecord(
            name=fields.name or "Anonymous",
            amount_reference=self._to_reference(fields.amount, fields.currency),
            original=OriginalAmount(amount=fields.amount, currency=fields.currency),
            message=fields.message,
            timestamp=fields.timestamp
        )

        # Read-modify-write without a condition: a concurrent ingest may be lost
        summary = self._load_summary().add(record, updated_at=now)
        if not math.isfinite(summary.total_reference):
            logger.warning(
                f"Ignoring donation of {fields.amount} {fields.currency}: total would overflow.",
                extra={"event": "donation_ignored", "currency": fields.currency}
            )
            return IngestResult(accepted=False)
        self.data_access.put_summary(summary)

        logger.info(
            f"Recorded donation from {record.name}: {fields.amount} {fields.currency} "
            f"= {record.amount_reference:.4f} {self.reference_currency}.",
            extra={
                "event": "donation_recorded",
                "donor": record.name,
                "currency": fields.currency,
                "amount_reference": record.amount_reference,
                "supporters_count": summary.supporters_count,
            }
        )
        return IngestResult(accepted=True, record=record)

    def resolve_display_currency(self, requested: str | None) -> str:
        currency = (requested or "").upper()
        if currency in self.display_currencies:
            return currency
        return self.default_display_currency

    def snapshot(self, display_currency: str | None = None) -> SummaryView:
        summary = self._load_summary()
        currency = self.resolve_display_currency(display_currency)

        rate = self.rate_cache.get_rates().get(currency) or 0
        multiplier = rate if rate > 0 else 1

        recent = [
            RecentSupporterView(
                name=record.name,
                amount=round_display(record.amount_reference * multiplier),
                currency=currency,
                message=record.message or "",
                timestamp=record.timestamp
            )
            for record in summary.recent_supporters
        ]

        return SummaryView(
            currency=currency,
            total_amount=round_display(summary.total_reference * multiplier),
            supporters_count=summary.supporters_count,
            recent_supporters=recent,
            last_updated_iso=summary.last_updated_iso or self.clock()
        )
