"""Telemetry normalization, the shared metric registry, and its HTTP listener."""

from __future__ import annotations

from voltwatch.telemetry.metrics import MetricRegistry, normalize_key
from voltwatch.telemetry.normalizer import SYMBOLIC_VALUES, NormalizedMetrics, flatten
from voltwatch.telemetry.server import MetricsServer, build_app
from voltwatch.telemetry.sources import CarServerSource, ChargePointStatsSource, PeriodicPoller

__all__ = [
    "SYMBOLIC_VALUES",
    "CarServerSource",
    "ChargePointStatsSource",
    "MetricRegistry",
    "MetricsServer",
    "NormalizedMetrics",
    "PeriodicPoller",
    "build_app",
    "flatten",
    "normalize_key",
]
