from loguru import logger

from .formats import (
    CENT,
    SATS_PER_BTC,
    DisplayCurrency,
    copy_to_clipboard,
    fmt_money,
    format_amount,
    format_fiat,
    format_sats,
    sats_to_fiat,
    to_cents,
)
from .lightning import LightningError, generate_address_qr, lightning_uri, normalize_address, open_in_wallet
from .parsing import accept_custom_edit, parse_price, parse_sats, parse_sats_lenient
from .price import PriceLookupError, PriceQuote, lookup_btc_price
from .settings import SettingsError, get_display_currency, set_display_currency, toggle_display_currency
from .tip_core import (
    DEFAULT_PRESETS,
    TipSelection,
    TipState,
    format_for_display,
    is_submittable,
    mark_tip_sent,
    resolve_effective_amount,
    send_label,
)

logger.disable("ridetip")

__all__ = [
    "TipSelection",
    "TipState",
    "DEFAULT_PRESETS",
    "resolve_effective_amount",
    "format_for_display",
    "is_submittable",
    "send_label",
    "mark_tip_sent",
    "DisplayCurrency",
    "SATS_PER_BTC",
    "CENT",
    "to_cents",
    "sats_to_fiat",
    "format_sats",
    "format_fiat",
    "format_amount",
    "fmt_money",
    "copy_to_clipboard",
    "accept_custom_edit",
    "parse_sats",
    "parse_sats_lenient",
    "parse_price",
    "lookup_btc_price",
    "PriceQuote",
    "PriceLookupError",
    "get_display_currency",
    "set_display_currency",
    "toggle_display_currency",
    "SettingsError",
    "normalize_address",
    "lightning_uri",
    "open_in_wallet",
    "generate_address_qr",
    "LightningError",
]
