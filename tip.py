from __future__ import annotations

# ruff: noqa: E402  # allow docstring before imports

"""Public API and CLI entrypoint for the ride tip package.

Re-exports the main API from `ridetip` so that

    import tip as tipmod

gives access to the tip core, formatting and collaborators. Also provides
the `python tip.py` entry.
"""

import importlib.metadata as importlib_metadata
import sys

from ridetip import (
    CENT,
    DEFAULT_PRESETS,
    SATS_PER_BTC,
    DisplayCurrency,
    LightningError,
    PriceLookupError,
    PriceQuote,
    SettingsError,
    TipSelection,
    TipState,
    format_amount,
    format_for_display,
    is_submittable,
    lightning_uri,
    lookup_btc_price,
    mark_tip_sent,
    parse_sats,
    resolve_effective_amount,
    sats_to_fiat,
    to_cents,
)
from ridetip.cli import run_cli

try:
    _distribution_version = importlib_metadata.version("ride-tip")
except importlib_metadata.PackageNotFoundError:
    __version__ = "0+unknown"
else:
    __version__ = _distribution_version or "0+unknown"

__all__ = [
    "__version__",
    "TipSelection",
    "TipState",
    "DEFAULT_PRESETS",
    "resolve_effective_amount",
    "format_for_display",
    "is_submittable",
    "mark_tip_sent",
    "DisplayCurrency",
    "SATS_PER_BTC",
    "CENT",
    "to_cents",
    "sats_to_fiat",
    "format_amount",
    "parse_sats",
    "lookup_btc_price",
    "PriceQuote",
    "PriceLookupError",
    "SettingsError",
    "lightning_uri",
    "LightningError",
    "run_cli",
]

if __name__ == "__main__":
    sys.exit(run_cli())
