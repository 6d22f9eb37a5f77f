import logging
from donation_ledger.core.dependencies import get_rate_cache

# Workers are entry points, so they configure logging themselves
from donation_ledger.core.logging_config import configure_logging
configure_logging()

logger = logging.getLogger(__name__)

def lambda_handler(event, context):
    """
    Scheduled warm-up: refreshes the FX snapshot when it is stale so the
    next webhook or summary read finds fresh rates.
    """
    rate_cache = get_rate_cache()
    rates = rate_cache.get_rates()

    degraded = not any(rate > 0 for rate in rates.values())
    if degraded:
        logger.warning(f"Rate cache still degraded after refresh attempt: {rates}")
    else:
        logger.info(f"Rate cache warm: {rates}")

    return {'statusCode': 200, 'rates': rates, 'degraded': degraded}
