import httpx

from donation_ledger.core.exceptions import RateProviderError


class FxRateProvider:
    """Client for an exchangerate.host style `latest` endpoint."""

    def __init__(
        self,
        url: str,
        access_key: str | None = None,
        client: httpx.Client | None = None,
        timeout: float = 5.0
    ):
        self.url = url
        self.access_key = access_key
        self._client = client or httpx.Client(timeout=timeout)

    @property
    def name(self) -> str:
        return "exchangerate.host"

    def _request(self, params: dict) -> dict:
        if self.access_key:
            params["access_key"] = self.access_key

        try:
            response = self._client.get(self.url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise RateProviderError(
                f"FX provider HTTP error {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.RequestError as e:
            raise RateProviderError(f"FX provider request failed: {e.__class__.__name__}") from e
        except ValueError as e:
            raise RateProviderError(f"FX provider returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise RateProviderError("FX provider response is not a JSON object")
        if data.get("success") is False:
            info = (data.get("error") or {}).get("info", "Unknown error")
            raise RateProviderError(f"FX provider API error: {info}")
        return data

    def fetch_rates(self, base: str, symbols: list[str]) -> dict[str, float]:
        """Return `{symbol: rate}` where 1 `base` = rate units of `symbol`."""
        data = self._request({"base": base, "symbols": ",".join(symbols)})

        rates = data.get("rates")
        if not isinstance(rates, dict) or not rates:
            raise RateProviderError("FX provider response has no rates")

        try:
            return {code.upper(): float(value) for code, value in rates.items()}
        except (TypeError, ValueError) as e:
            raise RateProviderError(f"FX provider returned a non-numeric rate: {e}") from e

    def close(self) -> None:
        self._client.close()
