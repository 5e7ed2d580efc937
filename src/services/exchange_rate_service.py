from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, Optional

import httpx

from src.core.config import get_settings
from src.core.errors import ExchangeRateError

logger = logging.getLogger(__name__)


class ExchangeRateService:
    """Latest-rate lookups against the public exchange-rate API.

    Rates are quoted as "one unit of ``currency`` in the base currency". Nothing is
    retried; a failed lookup raises ``ExchangeRateError``.
    """

    def __init__(self, client: Optional[httpx.Client] = None) -> None:
        self.settings = get_settings()
        self._client = client

    @property
    def base_currency(self) -> str:
        return self.settings.base_currency.strip().upper()

    def rate_to_base(self, currency: str) -> Decimal:
        code = (currency or "").strip().upper() or self.base_currency
        if code == self.base_currency:
            return Decimal("1")

        url = f"{self.settings.exchange_rate_base_url.rstrip('/')}/{code}"
        try:
            if self._client is not None:
                response = self._client.get(url, timeout=self.settings.exchange_rate_timeout_seconds)
            else:
                response = httpx.get(url, timeout=self.settings.exchange_rate_timeout_seconds)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error converting %s to %s: %s", code, self.base_currency, exc)
            raise ExchangeRateError(f"Error converting {code} to {self.base_currency}: {exc}") from exc

        rates = payload.get("rates") if isinstance(payload, dict) else None
        raw_rate = rates.get(self.base_currency) if isinstance(rates, dict) else None
        try:
            rate = Decimal(str(raw_rate)) if raw_rate is not None else None
        except InvalidOperation:
            rate = None
        if rate is None or not rate.is_finite() or rate <= 0:
            raise ExchangeRateError(f"No {self.base_currency} rate returned for {code}")
        return rate

    def convert(self, amount: Decimal | float, currency: str) -> Decimal:
        return Decimal(str(amount)) * self.rate_to_base(currency)

    def run_lookup(self) -> Callable[[str], Decimal]:
        """Rate lookup memoised for a single processing run."""
        cache: Dict[str, Decimal] = {}

        def lookup(currency: str) -> Decimal:
            code = currency.strip().upper()
            if code not in cache:
                cache[code] = self.rate_to_base(code)
            return cache[code]

        return lookup
