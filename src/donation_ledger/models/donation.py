from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


RECENT_SUPPORTERS_LIMIT = 10

class OriginalAmount(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: float
    currency: str

class DonationRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = "Anonymous"
    amount_reference: float = Field(ge=0)  # in the reference currency
    original: OriginalAmount  # as received, audit only
    message: str = ""
    timestamp: str

class DonationSummary(BaseModel):
    total_reference: float = Field(default=0.0, ge=0)
    supporters_count: int = Field(default=0, ge=0)
    recent_supporters: list[DonationRecord] = Field(default_factory=list)  # newest first
    last_updated_iso: str | None = None

    def add(self, record: DonationRecord, updated_at: str) -> "DonationSummary":
        """Return a new summary with `record` applied; self is left untouched."""
        return DonationSummary(
            total_reference=self.total_reference + record.amount_reference,
            supporters_count=self.supporters_count + 1,
            recent_supporters=[record, *self.recent_supporters][:RECENT_SUPPORTERS_LIMIT],
            last_updated_iso=updated_at
        )

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class RecentSupporterView(_CamelModel):
    name: str
    amount: int
    currency: str
    message: str
    timestamp: str

class SummaryView(_CamelModel):
    currency: str
    total_amount: int
    supporters_count: int
    recent_supporters: list[RecentSupporterView]
    last_updated_iso: str
