import logging
from botocore.exceptions import ClientError
from datetime import datetime, timezone

from donation_ledger.models.donation import DonationSummary
from donation_ledger.models.rates import ExchangeRateSnapshot

logger = logging.getLogger(__name__)

RATES_PK = "donation-fx"
RATES_SK = "rates"
SUMMARY_PK = "donation-summary"
SUMMARY_SK = "summary"
VALUE_ATTR = "value"

class DynamoDataAccess:
    """
    Whole-value JSON documents in a single table. Each namespace is a
    partition key holding one named item; there are no partial updates
    and no transactions across namespaces.
    """

    def __init__(self, table):
        self.table = table

    def _get_value(self, pk: str, sk: str) -> str | None:
        response = self.table.get_item(Key={"PK": pk, "SK": sk})
        item = response.get("Item")
        if not item:
            return None
        return item.get(VALUE_ATTR)

    def _put_value(self, pk: str, sk: str, value: str) -> None:
        try:
            self.table.put_item(
                Item={
                    "PK": pk,
                    "SK": sk,
                    VALUE_ATTR: value,
                    "updated_at": datetime.now(timezone.utc).isoformat()
                }
            )
        except ClientError as e:
            logger.error(f"Error writing {pk}/{sk}: {e}")
            raise

    def get_rate_snapshot(self) -> ExchangeRateSnapshot | None:
        raw = self._get_value(RATES_PK, RATES_SK)
        if raw is None:
            return None
        return ExchangeRateSnapshot.model_validate_json(raw)

    def put_rate_snapshot(self, snapshot: ExchangeRateSnapshot) -> None:
        self._put_value(RATES_PK, RATES_SK, snapshot.model_dump_json())

    def get_summary(self) -> DonationSummary | None:
        raw = self._get_value(SUMMARY_PK, SUMMARY_SK)
        if raw is None:
            return None
        return DonationSummary.model_validate_json(raw)

    def put_summary(self, summary: DonationSummary) -> None:
        # Unconditional overwrite: concurrent ingests are last-writer-wins
        self._put_value(SUMMARY_PK, SUMMARY_SK, summary.model_dump_json())
