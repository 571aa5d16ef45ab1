from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from .formats import DisplayCurrency, copy_to_clipboard, fmt_money, sats_to_fiat
from .lightning import LightningError, generate_address_qr, lightning_uri, normalize_address, open_in_wallet
from .parsing import is_digits, parse_presets, parse_price, parse_sats
from .price import PriceLookupError, lookup_btc_price
from .settings import SettingsError, get_display_currency, toggle_display_currency
from .tip_core import (
    DEFAULT_PRESETS,
    TipSelection,
    format_for_display,
    is_submittable,
    mark_sent_label,
    mark_tip_sent,
    send_label,
)


@dataclass
class AppConfig:
    presets: List[int] = field(default_factory=lambda: list(DEFAULT_PRESETS))
    default_currency: Optional[DisplayCurrency] = None
    lightning_address: Optional[str] = None


def _apply_setting(cfg: AppConfig, key: str, value: Any) -> None:
    if key in {"presets", "TIP_PRESETS"}:
        if isinstance(value, list):
            cfg.presets = [parse_sats(str(v)) for v in value]
        else:
            cfg.presets = parse_presets(str(value))
    elif key in {"display_currency", "TIP_DISPLAY_CURRENCY"}:
        cfg.default_currency = DisplayCurrency.parse(str(value))
    elif key in {"lightning_address", "TIP_LIGHTNING_ADDRESS"}:
        cfg.lightning_address = str(value).strip() or None


def _apply_setting_safely(cfg: AppConfig, key: str, value: Any, source: Path) -> None:
    try:
        _apply_setting(cfg, key, value)
    except ValueError as exc:
        logger.warning("Ignoring {} in {}: {}", key, source, exc)


def load_config(path: Optional[str] = None) -> AppConfig:
    cfg = AppConfig()

    # JSON candidates
    json_candidates: List[Path] = []
    if path:
        json_candidates.append(Path(path).expanduser())
    json_candidates.append(Path.cwd() / "tipconfig.json")
    json_candidates.append(Path(__file__).with_name("tipconfig.json"))
    for p in json_candidates:
        if not p.is_file():
            continue
        try:
            data = json.loads(p.read_text())
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring config file {}: {}", p, exc)
            break
        if isinstance(data, dict):
            for key in ("presets", "display_currency", "lightning_address"):
                if key in data:
                    _apply_setting_safely(cfg, key, data[key], p)
        break

    # .env candidates
    env_candidates: List[Path] = [Path.cwd() / ".env", Path(__file__).with_name(".env")]
    for p in env_candidates:
        if not p.is_file():
            continue
        try:
            lines = p.read_text().splitlines()
        except OSError as exc:
            logger.warning("Ignoring env file {}: {}", p, exc)
            break
        for line in lines:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            k, v = line.split("=", 1)
            _apply_setting_safely(cfg, k.strip().upper(), v.strip(), p)
        break

    if not cfg.presets:
        cfg.presets = list(DEFAULT_PRESETS)
    return cfg


def _resolve_preset(value: int, presets: List[int]) -> int:
    if value in presets:
        return value
    if 1 <= value <= len(presets):
        return presets[value - 1]
    choices = ", ".join(str(p) for p in presets)
    raise ValueError(f"Preset must be one of {choices} (or its position 1-{len(presets)})")


def _fetch_rate() -> Optional[Decimal]:
    try:
        quote = lookup_btc_price()
    except PriceLookupError as exc:
        print(f"Warning: {exc}. Showing amounts in sats.", file=sys.stderr)
        return None
    return quote.price_usd


def summarize(
    selection: TipSelection,
    *,
    mode: DisplayCurrency,
    rate: Optional[Decimal],
    address: Optional[str] = None,
) -> Dict[str, Any]:
    amount = selection.effective_amount
    fiat = sats_to_fiat(amount, rate)
    return {
        "state": selection.state.value,
        "amount_sats": amount,
        "display_currency": mode.value,
        "display": format_for_display(amount, mode, rate),
        "usd": f"{fiat:.2f}" if fiat is not None else None,
        "btc_price_usd": str(rate) if rate is not None else None,
        "submittable": is_submittable(amount),
        "send_label": send_label(amount, mode, rate),
        "lightning_address": address,
        "lightning_uri": lightning_uri(address) if address else None,
    }


def print_summary(summary: Dict[str, Any], *, locale: Optional[str] = None) -> str:
    lines: List[str] = []
    lines.append("\n--- Tip ---")
    lines.append(f"Amount: {summary['amount_sats']} sats")
    lines.append(f"Display: {summary['display']}")
    if summary["usd"] is not None:
        lines.append(
            f"USD value: {fmt_money(Decimal(summary['usd']), locale=locale)} at {fmt_money(Decimal(summary['btc_price_usd']), locale=locale)}/BTC"
        )
    if summary["lightning_address"]:
        lines.append(f"Lightning address: {summary['lightning_address']}")
    lines.append(f"[{summary['send_label']}]")
    return "\n".join(lines) + "\n"


def _report_sent(amount: int, mode: DisplayCurrency, rate: Optional[Decimal]) -> None:
    print(f"Tip of {format_for_display(amount, mode, rate)} marked as sent.")


def _maybe_generate_qr(address: Optional[str], qr_options: Optional[dict]) -> None:
    if not qr_options:
        return
    if not address:
        print("QR generation needs a Lightning address (--address).", file=sys.stderr)
        return
    try:
        path = generate_address_qr(address, directory=qr_options["directory"], scale=qr_options["scale"])
    except LightningError as exc:
        print(f"QR generation failed: {exc}", file=sys.stderr)
        return
    print(f"Saved QR code to {path}")


def _enter_custom(selection: TipSelection, text: str) -> TipSelection:
    updated = selection.enter_custom(text.replace(",", "").replace("_", ""))
    if updated is selection:
        print("Error: Enter a whole number of sats (e.g., 2100)")
    return updated


def run_interactive(
    config: AppConfig,
    *,
    mode: DisplayCurrency,
    rate: Optional[Decimal],
    address: Optional[str] = None,
) -> Optional[int]:
    """Prompt until a tip is marked as sent (returns its amount) or the user quits."""
    print("--- Tip Driver ---")
    if address:
        print(f"Lightning address: {address}")
    picks = list(config.presets)
    menu = "  ".join(f"[{i+1}] {p} sats" for i, p in enumerate(picks))
    quick_map = {str(i + 1): picks[i] for i in range(len(picks))}
    selection = TipSelection()
    while True:
        amount = selection.effective_amount
        print(f"Selected: {format_for_display(amount, mode, rate)}  [{send_label(amount, mode, rate)}]")
        s = input(f"Tip: {menu}  [custom sats (=N for N sats), c=clear, t=toggle currency, s=mark sent, q=quit]: ").strip().lower()
        if not s:
            continue
        if s in quick_map:
            selection = selection.select_preset(quick_map[s])
        elif s.startswith("="):
            selection = _enter_custom(selection, s[1:].strip())
        elif s in {"c", "clear"}:
            selection = selection.enter_custom("")
        elif s in {"t", "toggle"}:
            try:
                mode = toggle_display_currency()
            except SettingsError as exc:
                mode = mode.toggled()
                print(f"(Could not save display currency: {exc})")
            if mode is DisplayCurrency.FIAT and rate is None:
                print("No BTC price available; showing sats.")
        elif s in {"s", "send", "sent"}:
            sent: List[int] = []
            if mark_tip_sent(selection, sent.append):
                _report_sent(sent[0], mode, rate)
                return sent[0]
            print("Please select or enter an amount")
        elif s in {"q", "quit", "exit"}:
            return None
        else:
            selection = _enter_custom(selection, s)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Tip a driver in sats. Pick a preset or enter a custom amount; shows the value in sats or USD."
    )
    parser.add_argument("--preset", type=int, help="Preset tip amount in sats, or its position in the preset list")
    parser.add_argument("--amount", help="Custom tip amount in sats (digits only). Takes precedence over --preset")
    parser.add_argument("--currency", choices=["sats", "usd"], default=None, help="Display currency. Default: saved setting")
    parser.add_argument("--toggle-currency", action="store_true", help="Switch the saved display currency between sats and usd")
    parser.add_argument("--price", help="BTC price in USD to use instead of looking it up")
    parser.add_argument("--offline", action="store_true", help="Never look up the BTC price; USD display falls back to sats")
    parser.add_argument("--address", help="Driver's Lightning address, e.g. driver@example.com")
    parser.add_argument("--copy", action="store_true", help="Copy the Lightning address to the clipboard")
    parser.add_argument("--open", action="store_true", help="Open the Lightning address in a wallet app")
    parser.add_argument("--qr", action="store_true", help="Save a QR code of the Lightning address")
    parser.add_argument("--qr-dir", default="qr_codes", help="Directory to write the QR code PNG file")
    parser.add_argument("--qr-scale", type=int, default=5, help="Pixel scale for the generated QR image")
    parser.add_argument("--mark-sent", action="store_true", help="Record the tip as sent through an external wallet")
    parser.add_argument("--config", help="Path to JSON config with presets, display_currency, lightning_address")
    parser.add_argument("--locale", help="Locale for USD formatting (e.g., en_US). Requires Babel if provided.")
    parser.add_argument("--json", action="store_true", help="Output the tip summary as JSON")
    parser.add_argument("--verbose", action="store_true", help="Log price lookups and settings changes to stderr")
    parser.add_argument("--interactive", action="store_true", help="Force interactive mode regardless of provided flags.")
    return parser


def run_cli(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logger.enable("ridetip")

    config = load_config(args.config)

    try:
        if args.toggle_currency:
            mode = toggle_display_currency()
            print(f"Display currency: {mode.value}")
        if args.currency:
            mode = DisplayCurrency.parse(args.currency)
        elif not args.toggle_currency:
            mode = get_display_currency(default=config.default_currency or DisplayCurrency.FIAT)
    except SettingsError as exc:
        parser.error(str(exc))

    address: Optional[str] = None
    raw_address = args.address or config.lightning_address
    if raw_address:
        try:
            address = normalize_address(raw_address)
        except LightningError as exc:
            parser.error(str(exc))

    has_selection = args.amount is not None or args.preset is not None
    actions_only = not (args.interactive or has_selection) and (args.toggle_currency or args.copy or args.open or args.qr)

    rate: Optional[Decimal] = None
    if args.price is not None:
        try:
            rate = parse_price(args.price)
        except ValueError as e:
            parser.error(str(e))
    elif mode is DisplayCurrency.FIAT and not args.offline and not actions_only:
        rate = _fetch_rate()

    qr_options: Optional[dict] = None
    if args.qr:
        qr_options = {"directory": Path(args.qr_dir), "scale": max(1, args.qr_scale)}

    if args.copy:
        if not address:
            parser.error("--copy requires a Lightning address (--address)")
        if copy_to_clipboard(address):
            print("Copied to clipboard")
        else:
            print("(Could not copy to clipboard on this system)", file=sys.stderr)
    if args.open:
        if not address:
            parser.error("--open requires a Lightning address (--address)")
        if not open_in_wallet(address):
            print("No Lightning wallet app found", file=sys.stderr)
    _maybe_generate_qr(address, qr_options)

    if actions_only:
        return 0
    if args.interactive or not has_selection:
        try:
            run_interactive(config, mode=mode, rate=rate, address=address)
            return 0
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            return 0

    selection = TipSelection()
    if args.preset is not None:
        try:
            selection = selection.select_preset(_resolve_preset(args.preset, config.presets))
        except ValueError as e:
            parser.error(str(e))
    if args.amount is not None:
        text = args.amount.strip()
        if text and not is_digits(text):
            print(f"Warning: custom amount {text!r} is not a whole number of sats; treating as 0.", file=sys.stderr)
        selection = TipSelection(preset_amount=None, freeform_text=text) if text else selection

    summary = summarize(selection, mode=mode, rate=rate, address=address)
    sent: List[int] = []
    if args.mark_sent:
        mark_tip_sent(selection, sent.append)
        summary["sent"] = bool(sent)
    if args.json:
        print(json.dumps(summary))
    else:
        print(print_summary(summary, locale=args.locale))

    if args.mark_sent:
        if not sent:
            print("Please select or enter an amount", file=sys.stderr)
            return 1
        if not args.json:
            _report_sent(sent[0], mode, rate)
    elif address and summary["submittable"] and not args.json:
        print(f"Paying externally? {mark_sent_label(summary['amount_sats'], mode, rate)} with --mark-sent.")
    return 0
