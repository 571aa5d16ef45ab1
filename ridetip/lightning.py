from __future__ import annotations

import re
import webbrowser
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

URI_SCHEME = "lightning:"

_ADDRESS_RE = re.compile(r"^[a-z0-9._+-]+@[a-z0-9-]+(?:\.[a-z0-9-]+)*\.[a-z]{2,}$")


class LightningError(RuntimeError):
    """Raised for malformed Lightning addresses or QR generation failures."""


def normalize_address(text: str) -> str:
    address = (text or "").strip()
    if address.lower().startswith(URI_SCHEME):
        address = address[len(URI_SCHEME):]
    address = address.strip().lower()
    if not _ADDRESS_RE.match(address):
        raise LightningError(f"Not a valid Lightning address: {text!r}")
    return address


def lightning_uri(address: str) -> str:
    return f"{URI_SCHEME}{normalize_address(address)}"


def open_in_wallet(address: str, opener: Optional[Callable[[str], bool]] = None) -> bool:
    """Ask the system to open the address in a wallet app.

    Returns False when no handler accepted the ``lightning:`` URI.
    """
    uri = lightning_uri(address)
    open_impl = opener or webbrowser.open
    try:
        opened = bool(open_impl(uri))
    except webbrowser.Error as exc:
        logger.debug("No handler for {}: {}", uri, exc)
        return False
    if not opened:
        logger.debug("No handler accepted {}", uri)
    return opened


def _load_segno():
    try:
        import segno  # type: ignore
    except ImportError as exc:  # pragma: no cover - runtime guard
        raise LightningError(
            "segno is required for QR generation. Install with `pip install ride-tip[qr]`."
        ) from exc
    return segno


def generate_address_qr(address: str, *, directory: Path, scale: int = 5) -> Path:
    segno = _load_segno()
    uri = lightning_uri(address)
    directory.mkdir(parents=True, exist_ok=True)
    local_part = uri[len(URI_SCHEME):].split("@", 1)[0]
    filename = directory / f"lightning_{re.sub(r'[^a-z0-9]+', '_', local_part)}.png"
    qr = segno.make(uri)
    qr.save(str(filename), scale=max(1, scale))
    logger.debug("Saved QR code for {} to {}", uri, filename)
    return filename
