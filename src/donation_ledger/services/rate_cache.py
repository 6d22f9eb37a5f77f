import logging
from datetime import timedelta
from typing import Callable

from botocore.exceptions import ClientError

from donation_ledger.core.clock import now_millis
from donation_ledger.core.exceptions import RateProviderError
from donation_ledger.data_access.dynamodb import DynamoDataAccess
from donation_ledger.models.rates import ExchangeRateSnapshot
from donation_ledger.services.fx_provider import FxRateProvider

logger = logging.getLogger(__name__)

class RateCache:
    """
    Reference-currency based FX rates, persisted with their fetch time.

    `get_rates` never raises for upstream trouble: when the provider fails
    every supported currency maps to 0.0 and nothing is written, so the next
    call tries the provider again.
    """

    def __init__(
        self,
        data_access: DynamoDataAccess,
        provider: FxRateProvider,
        reference_currency: str,
        currencies: list[str],
        ttl: timedelta = timedelta(hours=12),
        clock: Callable[[], int] = now_millis
    ):
        self.data_access = data_access
        self.provider = provider
        self.reference_currency = reference_currency.upper()
        self.currencies = [c.upper() for c in currencies]
        self.ttl = ttl
        self.clock = clock

    def _read_snapshot(self) -> ExchangeRateSnapshot | None:
        try:
            return self.data_access.get_rate_snapshot()
        except (ClientError, ValueError) as e:
            logger.warning(f"Rate cache unreadable, treating as miss: {e}")
            return None

    def get_rates(self) -> dict[str, float]:
        snapshot = self._read_snapshot()
        if snapshot and snapshot.is_fresh(self.clock(), self.ttl):
            return snapshot.rates
        return self.refresh()

    def refresh(self) -> dict[str, float]:
        """Fetch from the provider and overwrite the cached snapshot."""
        now = self.clock()
        try:
            rates = self.provider.fetch_rates(self.reference_currency, self.currencies)
        except RateProviderError as e:
            logger.warning(f"FX refresh failed, using zero rates: {e}")
            return {currency: 0.0 for currency in self.currencies}

        snapshot = ExchangeRateSnapshot(rates=rates, timestamp=now)
        try:
            self.data_access.put_rate_snapshot(snapshot)
        except ClientError as e:
            logger.warning(f"Could not persist refreshed rates: {e}")
        else:
            logger.info(f"Refreshed {self.reference_currency} rates from {self.provider.name}: {rates}")
        return snapshot.rates
