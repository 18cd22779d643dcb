"""Security panel data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


class AlarmStatus(Enum):
    """Alarm escalation ladder."""
    NO_ALARM = "NO_ALARM"
    PENDING_ALARM = "PENDING_ALARM"
    ALARM = "ALARM"

    @property
    def description(self) -> str:
        return _ALARM_DISPLAY[self][0]

    @property
    def color(self) -> Tuple[int, int, int]:
        return _ALARM_DISPLAY[self][1]


class ArmingStatus(Enum):
    """Operator-selected arming mode."""
    DISARMED = "DISARMED"
    ARMED_HOME = "ARMED_HOME"
    ARMED_AWAY = "ARMED_AWAY"

    @property
    def description(self) -> str:
        return _ARMING_DISPLAY[self][0]

    @property
    def color(self) -> Tuple[int, int, int]:
        return _ARMING_DISPLAY[self][1]


class SensorType(Enum):
    """Kinds of sensor the panel knows about."""
    DOOR = "DOOR"
    WINDOW = "WINDOW"
    MOTION = "MOTION"


_ALARM_DISPLAY = {
    AlarmStatus.NO_ALARM: ("Cool and Good", (120, 200, 30)),
    AlarmStatus.PENDING_ALARM: ("I'm in Danger...", (200, 150, 20)),
    AlarmStatus.ALARM: ("Awooga!", (250, 80, 50)),
}

_ARMING_DISPLAY = {
    ArmingStatus.DISARMED: ("Disarmed", (120, 200, 30)),
    ArmingStatus.ARMED_HOME: ("Armed - At Home", (190, 180, 50)),
    ArmingStatus.ARMED_AWAY: ("Armed - Away", (170, 30, 150)),
}


@dataclass(eq=False)
class Sensor:
    """A door, window or motion sensor.

    Identity is the (name, sensor_type) pair. The activation flag is state,
    not identity, so a sensor keeps its place in a set while it toggles.
    """
    name: str
    sensor_type: SensorType
    active: bool = field(default=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sensor):
            return NotImplemented
        return self.name == other.name and self.sensor_type == other.sensor_type

    def __hash__(self) -> int:
        return hash((self.name, self.sensor_type))

    def __lt__(self, other: "Sensor") -> bool:
        return (self.name, self.sensor_type.value) < (other.name, other.sensor_type.value)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize sensor for storage and API responses."""
        return {
            "name": self.name,
            "sensor_type": self.sensor_type.value,
            "active": self.active,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Sensor":
        """Build a sensor from its serialized form."""
        return cls(
            name=data["name"],
            sensor_type=SensorType(data["sensor_type"]),
            active=bool(data.get("active", False)),
        )
