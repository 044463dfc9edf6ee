"""Shared registry of lazily created Prometheus gauges.

Every monitoring loop and side-channel poller writes into the same
:class:`MetricRegistry`. One lock guards the lookup-or-create so two
writers can never register the same gauge twice.
"""

from __future__ import annotations

import logging
import re
import threading
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Gauge, generate_latest

from voltwatch.telemetry.normalizer import NormalizedMetrics

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9_:]+")


def normalize_key(key: str) -> str:
    """Coerce *key* into a valid Prometheus metric name.

    >>> normalize_key("carserver:temp.cpu-0")
    'carserver:temp_cpu_0'
    """
    name = _INVALID_CHARS.sub("_", key)
    if not name or name[0].isdigit():
        name = f"_{name}"
    return name


class MetricRegistry:
    """Name → gauge mapping. Gauges are created on first write and never removed."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry if registry is not None else CollectorRegistry()
        self._gauges: dict[str, Gauge] = {}
        self._values: dict[str, float] = {}
        self._lock = threading.Lock()

    @property
    def collector_registry(self) -> CollectorRegistry:
        return self._registry

    def set(self, name: str, value: float) -> None:
        """Set gauge *name* to *value*, creating it on first use."""
        key = normalize_key(name)
        with self._lock:
            gauge = self._gauges.get(key)
            if gauge is None:
                gauge = Gauge(key, f"voltwatch metric {name}", registry=self._registry)
                self._gauges[key] = gauge
                logger.debug("Registered gauge %s", key)
            gauge.set(value)
            self._values[key] = float(value)

    def update(self, metrics: NormalizedMetrics | Mapping[str, float]) -> int:
        """Set every entry of *metrics*. Returns the number written."""
        values = metrics.values if isinstance(metrics, NormalizedMetrics) else metrics
        for name, value in values.items():
            self.set(name, value)
        return len(values)

    def get(self, name: str) -> float | None:
        with self._lock:
            return self._values.get(normalize_key(name))

    def snapshot(self) -> dict[str, float]:
        """Return a copy of all current values keyed by metric name."""
        with self._lock:
            return dict(self._values)

    def render(self) -> bytes:
        """Prometheus text exposition of every registered gauge."""
        return generate_latest(self._registry)

    def __len__(self) -> int:
        with self._lock:
            return len(self._gauges)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        with self._lock:
            return normalize_key(name) in self._gauges
