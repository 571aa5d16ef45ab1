from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Optional, Tuple

from .formats import DisplayCurrency, Rate, format_amount
from .parsing import accept_custom_edit, parse_sats_lenient

DEFAULT_PRESETS: Tuple[int, ...] = (500, 1000, 2100, 5000)

TipSentCallback = Callable[[int], None]


class TipState(str, Enum):
    NO_SELECTION = "no_selection"
    PRESET_SELECTED = "preset_selected"
    CUSTOM_ENTERED = "custom_entered"


@dataclass(frozen=True)
class TipSelection:
    """Tip choice for one screen visit.

    A preset and a custom entry are mutually exclusive: choosing one clears
    the other. Transitions return a new selection.
    """

    preset_amount: Optional[int] = None
    freeform_text: str = ""

    def select_preset(self, amount: int) -> "TipSelection":
        return replace(self, preset_amount=int(amount), freeform_text="")

    def enter_custom(self, text: str) -> "TipSelection":
        accepted = accept_custom_edit(self.freeform_text, text)
        if accepted != text:
            return self
        return replace(self, preset_amount=None, freeform_text=accepted)

    def clear(self) -> "TipSelection":
        return TipSelection()

    @property
    def state(self) -> TipState:
        if self.freeform_text:
            return TipState.CUSTOM_ENTERED
        if self.preset_amount is not None:
            return TipState.PRESET_SELECTED
        return TipState.NO_SELECTION

    @property
    def effective_amount(self) -> int:
        return resolve_effective_amount(self)


def resolve_effective_amount(selection: TipSelection) -> int:
    if selection.freeform_text:
        return parse_sats_lenient(selection.freeform_text)
    if selection.preset_amount is None or selection.preset_amount < 0:
        return 0
    return int(selection.preset_amount)


def format_for_display(amount: int, mode: DisplayCurrency, rate: Optional[Rate] = None) -> str:
    return format_amount(amount, mode, rate)


def is_submittable(amount: int) -> bool:
    return amount > 0


def send_label(amount: int, mode: DisplayCurrency, rate: Optional[Rate] = None) -> str:
    if not is_submittable(amount):
        return "Select Amount"
    return f"Send {format_for_display(amount, mode, rate)}"


def mark_sent_label(amount: int, mode: DisplayCurrency, rate: Optional[Rate] = None) -> str:
    return f"Mark as Sent ({format_for_display(amount, mode, rate)})"


def mark_tip_sent(selection: TipSelection, on_tip_sent: TipSentCallback) -> bool:
    """Hand the resolved amount to ``on_tip_sent`` if it can be submitted."""
    amount = resolve_effective_amount(selection)
    if not is_submittable(amount):
        return False
    on_tip_sent(amount)
    return True
