"""voltwatch: adaptive Tesla telemetry monitor with ChargePoint charging automation."""

__version__ = "0.3.0"
