"""Adaptive vehicle polling, charging automation, and the task supervisor."""

from voltwatch.monitor.automation import ChargingAutomation, ChargingStatus, stop_active_sessions
from voltwatch.monitor.scheduler import PollMode, PollScheduler
from voltwatch.monitor.supervisor import Supervisor
from voltwatch.monitor.vehicle import VehicleMonitor

__all__ = [
    "ChargingAutomation",
    "ChargingStatus",
    "PollMode",
    "PollScheduler",
    "Supervisor",
    "VehicleMonitor",
    "stop_active_sessions",
]
