"""Mercury 230/236 power meter reader."""

__version__ = "0.1.0"
