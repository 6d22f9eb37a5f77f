import boto3
from datetime import timedelta
from functools import lru_cache

from donation_ledger.core.config import settings
from donation_ledger.data_access.dynamodb import DynamoDataAccess
from donation_ledger.services.donation_ledger import DonationLedger
from donation_ledger.services.fx_provider import FxRateProvider
from donation_ledger.services.rate_cache import RateCache


@lru_cache()
def get_boto_session() -> boto3.Session:
    return boto3.Session(
        region_name=settings.AWS_REGION,
        profile_name=settings.AWS_PROFILE
    )

@lru_cache()
def get_data_access() -> DynamoDataAccess:
    session = get_boto_session()
    dynamo_resource = session.resource('dynamodb')
    table = dynamo_resource.Table(settings.DYNAMODB_TABLE_NAME)
    return DynamoDataAccess(table=table)

@lru_cache()
def get_fx_provider() -> FxRateProvider:
    return FxRateProvider(
        url=settings.FX_API_URL,
        access_key=settings.FX_API_ACCESS_KEY,
        timeout=settings.FX_API_TIMEOUT_SECONDS
    )

@lru_cache()
def get_rate_cache() -> RateCache:
    return RateCache(
        data_access=get_data_access(),
        provider=get_fx_provider(),
        reference_currency=settings.REFERENCE_CURRENCY,
        currencies=settings.DISPLAY_CURRENCIES,
        ttl=timedelta(hours=settings.RATE_CACHE_TTL_HOURS)
    )

@lru_cache()
def get_donation_ledger() -> DonationLedger:
    return DonationLedger(
        data_access=get_data_access(),
        rate_cache=get_rate_cache(),
        verification_token=settings.KOFI_VERIFICATION_TOKEN,
        reference_currency=settings.REFERENCE_CURRENCY,
        display_currencies=settings.DISPLAY_CURRENCIES,
        default_display_currency=settings.DEFAULT_DISPLAY_CURRENCY
    )
