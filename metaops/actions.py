"""Typed access to the ``actions`` / ``action_values`` lists of an insights row.

Two purchase matchers exist on purpose. Most tools count the first action whose
type *contains* "purchase" (which also picks up ``offsite_conversion.fb_pixel_purchase``
and friends); the funnel and attribution tools only accept the exact ``purchase``
type. Switching one to the other changes totals, so they stay separate.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from metaops.util import to_number


@dataclass(frozen=True)
class ActionEntry:
    type: str
    value: Any

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "ActionEntry":
        action_type = raw.get("action_type")
        if action_type is None:
            action_type = raw.get("type")
        return cls(type=str(action_type if action_type is not None else ""), value=raw.get("value"))


ActionMatcher = Callable[[ActionEntry], bool]


def _entries(row: Mapping[str, Any], field: str) -> tuple[ActionEntry, ...]:
    raw = row.get(field)
    if not isinstance(raw, list):
        return ()
    return tuple(ActionEntry.from_raw(a) for a in raw if isinstance(a, Mapping))


def actions_of(row: Mapping[str, Any]) -> tuple[ActionEntry, ...]:
    return _entries(row, "actions")


def action_values_of(row: Mapping[str, Any]) -> tuple[ActionEntry, ...]:
    return _entries(row, "action_values")


def contains_purchase(entry: ActionEntry) -> bool:
    return "purchase" in entry.type


def is_purchase(entry: ActionEntry) -> bool:
    return entry.type == "purchase"


def first_value(entries: Iterable[ActionEntry], matcher: ActionMatcher) -> float:
    for entry in entries:
        if matcher(entry):
            return to_number(entry.value)
    return 0.0


def purchase_count(row: Mapping[str, Any]) -> float:
    return first_value(actions_of(row), contains_purchase)


def purchase_value(row: Mapping[str, Any]) -> float:
    return first_value(action_values_of(row), contains_purchase)


def exact_purchase_count(row: Mapping[str, Any]) -> float:
    return first_value(actions_of(row), is_purchase)


def exact_purchase_value(row: Mapping[str, Any]) -> float:
    return first_value(action_values_of(row), is_purchase)


FUNNEL_STAGES: tuple[tuple[str, str], ...] = (
    ("view_content", "ViewContent"),
    ("add_to_cart", "AddToCart"),
    ("initiate_checkout", "InitiateCheckout"),
    ("purchase", "Purchase"),
)


def funnel_counts(row: Mapping[str, Any]) -> dict[str, float]:
    """Sum every action whose type is exactly one of the funnel stage types."""
    counts = {action_type: 0.0 for action_type, _ in FUNNEL_STAGES}
    for entry in actions_of(row):
        if entry.type in counts:
            counts[entry.type] += to_number(entry.value)
    return counts


class CreativeClassifier(Protocol):
    def classify(self, row: Mapping[str, Any]) -> str: ...


VIDEO_SIGNALS = (
    "video_view",
    "thruplay",
    "video_play",
    "video_10s_views",
    "video_continuous_2_sec_watched_actions",
)


class ActionSignalClassifier:
    """Guess "video" vs "image" from engagement action types.

    Approximate: an image ad never reports video actions, but a video ad with no
    recorded views is reported as an image.
    """

    def __init__(self, signals: Iterable[str] = VIDEO_SIGNALS) -> None:
        self.signals = tuple(s.lower() for s in signals)

    def looks_like_video(self, row: Mapping[str, Any]) -> bool:
        for entry in actions_of(row):
            t = entry.type.lower()
            if any(sig in t for sig in self.signals):
                return True
        return False

    def classify(self, row: Mapping[str, Any]) -> str:
        return "video" if self.looks_like_video(row) else "image"
