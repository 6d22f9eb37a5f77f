"""
Field extraction for donation webhooks.

Providers deliver the same fields either flat or nested under `data` (and
sometimes `data.tier`), with a few name variants. Every field has an ordered
chain of extractors; the first one yielding a truthy value wins, so the
order below is observable behaviour.
"""
import json
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable
from urllib.parse import parse_qs

from donation_ledger.core.exceptions import PayloadError

Extractor = Callable[[dict], Any]

_NOT_NUMERIC = re.compile(r"[^0-9.]")
_LEADING_NUMBER = re.compile(r"[0-9]+\.?[0-9]*|\.[0-9]+")


def field(*path: str) -> Extractor:
    def extract(payload: dict) -> Any:
        value: Any = payload
        for key in path:
            if not isinstance(value, dict):
                return None
            value = value.get(key)
        return value
    return extract


TOKEN_EXTRACTORS = (
    field("verification_token"),
    field("verificationToken"),
    field("data", "verification_token"),
)
AMOUNT_EXTRACTORS = (
    field("amount"),
    field("data", "amount"),
    field("data", "tier", "amount"),
    field("data", "total"),
)
CURRENCY_EXTRACTORS = (
    field("currency"),
    field("data", "currency"),
    field("data", "tier", "currency"),
)
NAME_EXTRACTORS = (
    field("from_name"),
    field("name"),
    field("data", "from_name"),
)
MESSAGE_EXTRACTORS = (
    field("message"),
    field("data", "message"),
)
TIMESTAMP_EXTRACTORS = (
    field("timestamp"),
    field("data", "timestamp"),
    field("data", "created_at"),
)


def first_of(payload: dict, extractors: Iterable[Extractor], default: Any = None) -> Any:
    for extract in extractors:
        value = extract(payload)
        if value:
            return value
    return default


def parse_amount(raw: Any) -> float:
    """
    Permissive amount parsing: drop everything except digits and dots, then
    read the leading decimal number ("¥1,000" -> 1000.0, "1.2.3" -> 1.2).
    Unparsable or non-positive input yields 0.0.
    """
    cleaned = _NOT_NUMERIC.sub("", str(raw))
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return 0.0
    amount = float(match.group())
    # hundreds of digits overflow to inf, which JSON cannot carry
    if not math.isfinite(amount) or amount <= 0:
        return 0.0
    return amount


@dataclass(frozen=True)
class DonationFields:
    amount_raw: Any
    amount: float
    currency: str
    name: str
    message: str
    timestamp: str


def extract_token(payload: dict) -> str | None:
    token = first_of(payload, TOKEN_EXTRACTORS)
    return None if token is None else str(token)


def extract_donation(payload: dict, default_currency: str, now_iso: str) -> DonationFields:
    amount_raw = first_of(payload, AMOUNT_EXTRACTORS, "0")
    currency = first_of(payload, CURRENCY_EXTRACTORS, default_currency)
    return DonationFields(
        amount_raw=amount_raw,
        amount=parse_amount(amount_raw),
        currency=str(currency).upper(),
        name=str(first_of(payload, NAME_EXTRACTORS, "Anonymous")),
        message=str(first_of(payload, MESSAGE_EXTRACTORS, "")),
        timestamp=str(first_of(payload, TIMESTAMP_EXTRACTORS, now_iso))
    )


def decode_body(body: bytes, content_type: str | None = None) -> dict:
    """
    Decode a webhook body into a dict. JSON bodies are used as-is; Ko-fi's
    form posts carry the JSON document in a `data` form field.
    """
    try:
        if content_type and "application/x-www-form-urlencoded" in content_type:
            form = parse_qs(body.decode("utf-8"))
            documents = form.get("data")
            if not documents:
                raise PayloadError("Form body has no data field")
            payload = json.loads(documents[0])
        else:
            payload = json.loads(body or b"{}")
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise PayloadError(f"Invalid payload: {e}") from e

    if not isinstance(payload, dict):
        raise PayloadError("Payload must be a JSON object")
    return payload
