"""Serial communication layer."""

from mercury_meter.serial.connection import SerialConnection

__all__ = ["SerialConnection"]
