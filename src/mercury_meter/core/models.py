"""Data models for Mercury meter readings."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PhaseValues(BaseModel):
    """One value per electrical phase."""

    p1: float = Field(0.0, description="Phase 1 value")
    p2: float = Field(0.0, description="Phase 2 value")
    p3: float = Field(0.0, description="Phase 3 value")

    @classmethod
    def from_list(cls, values: list[float]) -> "PhaseValues":
        """Build from decoded values in wire order (p1, p2, p3)."""
        if len(values) != 3:
            raise ValueError(f"Expected 3 phase values, got {len(values)}")
        return cls(p1=values[0], p2=values[1], p3=values[2])


class PhaseValuesWithSum(PhaseValues):
    """Per-phase values plus the value summed over all phases."""

    total: float = Field(0.0, description="Sum over all phases")

    @classmethod
    def from_list(cls, values: list[float]) -> "PhaseValuesWithSum":
        """Build from decoded values in wire order (sum, p1, p2, p3)."""
        if len(values) != 4:
            raise ValueError(f"Expected 4 values, got {len(values)}")
        return cls(total=values[0], p1=values[1], p2=values[2], p3=values[3])


class MeterReading(BaseModel):
    """Complete set of quantities collected in one session.

    A reading with ``online=False`` means the meter did not answer the
    channel test; every quantity is then zero.
    """

    timestamp: datetime = Field(default_factory=datetime.now, description="Time the reading was taken")
    online: bool = Field(True, description="Whether the meter answered")
    voltage: PhaseValues = Field(default_factory=PhaseValues, description="Voltage, V")
    current: PhaseValues = Field(default_factory=PhaseValues, description="Current, A")
    power_factor: PhaseValuesWithSum = Field(default_factory=PhaseValuesWithSum, description="cos(f)")
    frequency: float = Field(0.0, description="Grid frequency, Hz")
    phase_angles: PhaseValues = Field(default_factory=PhaseValues, description="Angle between phases, deg")
    active_power: PhaseValuesWithSum = Field(default_factory=PhaseValuesWithSum, description="Active power, W")
    reactive_power: PhaseValuesWithSum = Field(default_factory=PhaseValuesWithSum, description="Reactive power, VA")
    energy_from_reset: PhaseValuesWithSum = Field(
        default_factory=PhaseValuesWithSum, description="Energy since reset, kWh"
    )
    energy_yesterday: PhaseValuesWithSum = Field(default_factory=PhaseValuesWithSum, description="Energy yesterday, kWh")
    energy_today: PhaseValuesWithSum = Field(default_factory=PhaseValuesWithSum, description="Energy today, kWh")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "timestamp": "2026-01-13T10:30:00",
                "online": True,
                "voltage": {"p1": 230.12, "p2": 229.87, "p3": 231.05},
                "frequency": 50.01,
            }
        }
    )

    @classmethod
    def offline(cls) -> "MeterReading":
        """All-zero reading for a meter that did not answer."""
        return cls(online=False)
