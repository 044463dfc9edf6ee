"""Flatten arbitrarily nested telemetry into colon-joined numeric metrics.

Leaves resolve as follows:

* numbers map directly, booleans to ``1``/``0``, ``None`` to ``0``;
* strings first try a numeric parse, then :data:`SYMBOLIC_VALUES`;
* anything else (unknown strings, lists) is skipped.

>>> flatten("tesla", {"drive_state": {"shift_state": "DRIVE", "speed": 12}}).values
{'tesla:drive_state:shift_state': 2.0, 'tesla:drive_state:speed': 12.0}
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Ordered lookup for non-numeric status strings seen in vehicle and
# car-server payloads. Matching is exact and case-sensitive.
SYMBOLIC_VALUES: dict[str, float] = {
    "--": -1.0,
    "NONE": -1.0,
    "": -1.0,
    "PRESENT": 1.0,
    "ENGAGED": 1.0,
    "DISENGAGED": 0.0,
    "LATCHED": 1.0,
    "NOMINAL": 1.0,
    "FAULT": 0.0,
    "ERROR": 0.0,
    "DRIVE": 2.0,
    "PARKED": 1.0,
    "REVERSE": 3.0,
    "NEUTRAL": 4.0,
    "On": 1.0,
    "Off": 0.0,
    "Stopped": 0.0,
    "IDLE": 0.0,
    "ACTIVE": 1.0,
    "on": 1.0,
    "off": 0.0,
    "yes": 1.0,
    "no": 0.0,
}

SEPARATOR = ":"


@dataclass
class NormalizedMetrics:
    """Result of :func:`flatten`."""

    values: dict[str, float] = field(default_factory=dict)

    @property
    def count(self) -> int:
        """Number of leaves that resolved to a value."""
        return len(self.values)


def resolve_string(value: str) -> float | None:
    """Resolve a string leaf: numeric parse first, then the symbolic table.

    Surrounding whitespace and digit separators are rejected, and so are
    literals outside the float range.
    """
    if value.strip() == value and "_" not in value:
        try:
            number = float(value)
        except ValueError:
            pass
        else:
            if math.isfinite(number) or value.lstrip("+-").lower().startswith(("inf", "nan")):
                return number
            return None
    return SYMBOLIC_VALUES.get(value)


def resolve_leaf(value: Any) -> float | None:
    """Return the numeric value of a scalar leaf, or ``None`` to skip it."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return None
    if isinstance(value, str):
        return resolve_string(value)
    return None


def flatten(prefix: str, value: Any) -> NormalizedMetrics:
    """Flatten *value* into metrics keyed under *prefix*."""
    result = NormalizedMetrics()
    _walk(prefix, value, result.values)
    return result


def _walk(key: str, value: Any, out: dict[str, float]) -> None:
    if isinstance(value, dict):
        for child_key, child in value.items():
            _walk(f"{key}{SEPARATOR}{child_key}", child, out)
        return

    resolved = resolve_leaf(value)
    if resolved is None:
        logger.debug("Skipping unresolvable value at %s: %r", key, value)
        return
    out[key] = resolved
