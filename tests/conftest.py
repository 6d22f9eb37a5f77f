from unittest.mock import Mock

import pytest

from donation_ledger.data_access.dynamodb import DynamoDataAccess
from donation_ledger.services.donation_ledger import DonationLedger
from donation_ledger.services.fx_provider import FxRateProvider
from donation_ledger.services.rate_cache import RateCache

TOKEN = "kofi-test-token"
NOW_ISO = "2026-10-19T12:00:00.000Z"
START_MS = 1_792_000_000_000
HOUR_MS = 60 * 60 * 1000


class FakeTable:
    """In-memory stand-in for a boto3 DynamoDB Table (get_item/put_item only)."""

    def __init__(self):
        self.items = {}
        self.puts = []

    def get_item(self, Key):
        item = self.items.get((Key["PK"], Key["SK"]))
        return {"Item": dict(item)} if item else {}

    def put_item(self, Item, **kwargs):
        self.puts.append(Item)
        self.items[(Item["PK"], Item["SK"])] = dict(Item)
        return {}


class FakeClock:
    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def table():
    return FakeTable()


@pytest.fixture
def data_access(table):
    return DynamoDataAccess(table=table)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def provider():
    mock_provider = Mock(spec=FxRateProvider)
    mock_provider.name = "stub"
    mock_provider.fetch_rates.return_value = {"JPY": 150.0, "EUR": 0.95}
    return mock_provider


@pytest.fixture
def rate_cache(data_access, provider, clock):
    return RateCache(
        data_access=data_access,
        provider=provider,
        reference_currency="CHF",
        currencies=["JPY", "EUR"],
        clock=clock
    )


@pytest.fixture
def ledger(data_access, rate_cache):
    return DonationLedger(
        data_access=data_access,
        rate_cache=rate_cache,
        verification_token=TOKEN,
        reference_currency="CHF",
        display_currencies=["JPY", "EUR"],
        default_display_currency="JPY",
        clock=lambda: NOW_ISO
    )


def webhook(**fields):
    payload = {"verification_token": TOKEN}
    payload.update(fields)
    return payload
