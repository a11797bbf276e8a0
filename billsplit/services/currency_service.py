import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Optional, Tuple

import requests
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from billsplit.core.config import settings
from billsplit.core.errors import UpstreamUnavailable
from billsplit.core.utils import qround, to_decimal
from billsplit.models.exchange_rate import ExchangeRate

logger = logging.getLogger(__name__)

ONE = Decimal("1")

SUPPORTED_CURRENCIES = {
    "USD": {"name": "US Dollar", "symbol": "$"},
    "EUR": {"name": "Euro", "symbol": "€"},
    "GBP": {"name": "British Pound", "symbol": "£"},
    "JPY": {"name": "Japanese Yen", "symbol": "¥"},
    "CAD": {"name": "Canadian Dollar", "symbol": "C$"},
    "AUD": {"name": "Australian Dollar", "symbol": "A$"},
    "CHF": {"name": "Swiss Franc", "symbol": "CHF"},
    "CNY": {"name": "Chinese Yuan", "symbol": "¥"},
    "INR": {"name": "Indian Rupee", "symbol": "₹"},
    "KRW": {"name": "South Korean Won", "symbol": "₩"},
    "SGD": {"name": "Singapore Dollar", "symbol": "S$"},
    "HKD": {"name": "Hong Kong Dollar", "symbol": "HK$"},
    "NOK": {"name": "Norwegian Krone", "symbol": "kr"},
    "SEK": {"name": "Swedish Krona", "symbol": "kr"},
    "DKK": {"name": "Danish Krone", "symbol": "kr"},
    "PLN": {"name": "Polish Złoty", "symbol": "zł"},
    "CZK": {"name": "Czech Koruna", "symbol": "Kč"},
    "HUF": {"name": "Hungarian Forint", "symbol": "Ft"},
    "ILS": {"name": "Israeli Shekel", "symbol": "₪"},
    "NZD": {"name": "New Zealand Dollar", "symbol": "NZ$"},
}


def get_supported_currencies():
    return SUPPORTED_CURRENCIES


def format_currency(amount, currency: str) -> str:
    info = SUPPORTED_CURRENCIES.get(currency)
    value = qround(to_decimal(amount))
    if not info:
        return f"{value} {currency}"
    return f"{info['symbol']}{value}"


class CurrencyService:
    """
    Exchange rates backed by the ``exchange_rates`` cache table.

    One instance serves one request: rates looked up through it are memoised
    on the instance, nothing is shared between requests except the table.
    A cached row is reused while it is younger than ``RATE_CACHE_TTL_SECONDS``.
    When the provider fails, the last cached rate is used even if stale, and
    without one the rate degrades to 1.
    """

    V6_URL = "https://v6.exchangerate-api.com/v6/{key}/pair/{src}/{dst}"

    def __init__(
        self,
        db: AsyncSession,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        cache_ttl: Optional[int] = None,
    ):
        self.db = db
        self.api_key = api_key if api_key is not None else settings.EXCHANGE_API_KEY
        self.base_url = base_url or settings.EXCHANGE_BASE_URL
        self.cache_ttl = settings.RATE_CACHE_TTL_SECONDS if cache_ttl is None else cache_ttl
        self._rates: Dict[Tuple[str, str], Decimal] = {}

    async def get_exchange_rate(self, from_currency: str, to_currency: str) -> Decimal:
        if from_currency == to_currency:
            return ONE

        key = (from_currency, to_currency)
        if key in self._rates:
            return self._rates[key]

        cached = await self._get_cached(from_currency, to_currency)

        if cached is not None and self._is_fresh(cached):
            rate = to_decimal(cached.rate)
        else:
            try:
                rate = await run_in_threadpool(self._fetch_rate, from_currency, to_currency)
            except UpstreamUnavailable as e:
                if cached is not None:
                    logger.warning("Rate %s->%s unavailable (%s), using stale cached rate", from_currency, to_currency, e)
                    rate = to_decimal(cached.rate)
                else:
                    logger.warning("Rate %s->%s unavailable (%s), defaulting to 1", from_currency, to_currency, e)
                    rate = ONE
            else:
                await self._cache_rate(cached, from_currency, to_currency, rate)

        self._rates[key] = rate
        return rate

    async def convert_currency(self, amount, from_currency: str, to_currency: str) -> Decimal:
        rate = await self.get_exchange_rate(from_currency, to_currency)
        return to_decimal(amount) * rate

    async def _get_cached(self, from_currency: str, to_currency: str):
        q = select(ExchangeRate).where(
            ExchangeRate.from_currency == from_currency,
            ExchangeRate.to_currency == to_currency,
        )
        res = await self.db.execute(q)
        return res.scalar_one_or_none()

    def _is_fresh(self, row: ExchangeRate) -> bool:
        if row.updated_at is None:
            return False
        updated_at = row.updated_at
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        age = datetime.now(timezone.utc) - updated_at
        return age.total_seconds() < self.cache_ttl

    def _fetch_rate(self, from_currency: str, to_currency: str) -> Decimal:
        timeout = settings.EXCHANGE_TIMEOUT_SECONDS
        try:
            if self.api_key:
                url = self.V6_URL.format(key=self.api_key, src=from_currency, dst=to_currency)
                response = requests.get(url, timeout=timeout)
                response.raise_for_status()
                data = response.json()
                if data.get("result") != "success":
                    raise UpstreamUnavailable(f"provider answered {data.get('result')!r}")
                rate = data.get("conversion_rate")
            else:
                response = requests.get(f"{self.base_url}{from_currency}", timeout=timeout)
                response.raise_for_status()
                rate = response.json().get("rates", {}).get(to_currency)
        except requests.exceptions.RequestException as e:
            raise UpstreamUnavailable(str(e)) from e
        except ValueError as e:
            raise UpstreamUnavailable(f"unreadable provider response: {e}") from e

        if rate is None:
            raise UpstreamUnavailable(f"no rate for {from_currency}->{to_currency}")

        return to_decimal(rate)

    async def _cache_rate(self, row, from_currency: str, to_currency: str, rate: Decimal):
        now = datetime.now(timezone.utc)
        try:
            if row is None:
                self.db.add(ExchangeRate(
                    from_currency=from_currency,
                    to_currency=to_currency,
                    rate=rate,
                    updated_at=now,
                ))
            else:
                row.rate = rate
                row.updated_at = now
            await self.db.commit()
        except SQLAlchemyError:
            logger.exception("Could not cache rate %s->%s", from_currency, to_currency)
            await self.db.rollback()
