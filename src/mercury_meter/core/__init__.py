"""Core application functionality."""

from mercury_meter.core.config import Settings, setup_logging
from mercury_meter.core.models import MeterReading, PhaseValues, PhaseValuesWithSum

__all__ = [
    "MeterReading",
    "PhaseValues",
    "PhaseValuesWithSum",
    "Settings",
    "setup_logging",
]
