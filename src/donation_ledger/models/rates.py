from datetime import timedelta

from pydantic import BaseModel, Field


class ExchangeRateSnapshot(BaseModel):
    # 1 unit of the reference currency = rate units of the keyed currency
    rates: dict[str, float] = Field(default_factory=dict)
    timestamp: int  # epoch millis of the fetch

    def is_fresh(self, now_ms: int, ttl: timedelta) -> bool:
        return now_ms - self.timestamp < ttl.total_seconds() * 1000
