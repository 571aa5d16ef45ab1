from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Callable, Dict, Optional
from urllib import error, request

from loguru import logger

CACHE_FILENAME = "price_cache.json"
CACHE_KEY = "BTC:USD"
CACHE_TTL_MINUTES = 5
DEFAULT_API_URL = "https://api.utxoracle.io/latest.json"
USER_AGENT = "ridetip/0.1"


class PriceLookupError(RuntimeError):
    """Raised when the BTC price cannot be fetched."""


@dataclass
class PriceQuote:
    price_usd: Decimal
    source: str
    updated_at: str
    fetched_at: datetime

    def cache_payload(self) -> Dict[str, str]:
        return {
            "price_usd": str(self.price_usd),
            "source": self.source,
            "updated_at": self.updated_at,
            "fetched_at": self.fetched_at.isoformat(),
        }


FetchFunc = Callable[[], PriceQuote]


def _cache_path() -> Path:
    override = os.environ.get("TIP_PRICE_CACHE_PATH")
    if override:
        return Path(override).expanduser()
    return Path.cwd() / CACHE_FILENAME


def _load_cache() -> Dict[str, Dict[str, str]]:
    path = _cache_path()
    if not path.is_file():
        return {}
    try:
        payload = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable price cache {}: {}", path, exc)
        return {}
    if isinstance(payload, dict):
        return payload
    return {}


def _save_cache(data: Dict[str, Dict[str, str]]) -> None:
    path = _cache_path()
    try:
        path.write_text(json.dumps(data, indent=2, sort_keys=True))
    except OSError as exc:
        # Cache failures are non-fatal.
        logger.warning("Could not write price cache {}: {}", path, exc)


def _parse_cached(entry: Dict[str, str]) -> Optional[PriceQuote]:
    try:
        price = Decimal(entry["price_usd"])
        fetched_at = datetime.fromisoformat(entry["fetched_at"])
    except (KeyError, TypeError, InvalidOperation, ValueError):
        return None
    if fetched_at.tzinfo is None:
        fetched_at = fetched_at.replace(tzinfo=timezone.utc)
    return PriceQuote(
        price_usd=price,
        source=entry.get("source", "cache"),
        updated_at=entry.get("updated_at", ""),
        fetched_at=fetched_at,
    )


def _remote_fetch() -> PriceQuote:
    url = os.environ.get("TIP_PRICE_API_URL", DEFAULT_API_URL)
    req = request.Request(url, headers={"User-Agent": USER_AGENT, "Accept": "application/json"})
    logger.debug("Fetching BTC price from {}", url)
    try:
        with request.urlopen(req, timeout=8) as resp:
            raw = resp.read().decode("utf-8")
    except error.HTTPError as exc:
        raise PriceLookupError(f"Price lookup failed: HTTP {exc.code}") from exc
    except Exception as exc:  # pragma: no cover - transient network issues
        raise PriceLookupError(f"Price lookup failed: {exc}") from exc

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise PriceLookupError("Price API returned invalid JSON") from exc
    if not isinstance(payload, dict):
        raise PriceLookupError("Unexpected price API response format")

    raw_price = payload.get("price")
    if raw_price is None or isinstance(raw_price, bool):
        raise PriceLookupError("Price API response missing price")
    try:
        price = Decimal(str(raw_price))
    except InvalidOperation as exc:
        raise PriceLookupError(f"Price API returned a non-numeric price: {raw_price!r}") from exc
    if not price.is_finite() or price <= 0:
        raise PriceLookupError(f"Price API returned an invalid price: {raw_price!r}")

    updated_at = payload.get("updated_at")
    return PriceQuote(
        price_usd=price,
        source=url,
        updated_at=str(updated_at) if updated_at is not None else "",
        fetched_at=datetime.now(timezone.utc),
    )


def lookup_btc_price(
    *,
    fetcher: Optional[FetchFunc] = None,
    ttl_minutes: int = CACHE_TTL_MINUTES,
    use_cache: bool = True,
) -> PriceQuote:
    cache: Dict[str, Dict[str, str]] = _load_cache() if use_cache else {}

    if use_cache and CACHE_KEY in cache:
        cached = _parse_cached(cache[CACHE_KEY])
        if cached and datetime.now(timezone.utc) - cached.fetched_at <= timedelta(minutes=ttl_minutes):
            logger.debug("Using cached BTC price {} from {}", cached.price_usd, cached.fetched_at.isoformat())
            return cached

    fetch_impl = fetcher or _remote_fetch
    result = fetch_impl()
    logger.info("BTC price updated: {} USD", result.price_usd)

    if use_cache:
        cache[CACHE_KEY] = result.cache_payload()
        _save_cache(cache)

    return result
