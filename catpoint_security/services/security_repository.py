"""Repository implementations for sensors and system status."""

import os
import sqlite3
import threading
from typing import Dict, Set

from ..models.config import SystemConfig
from ..models.security import AlarmStatus, ArmingStatus, Sensor, SensorType
from .interfaces import SecurityRepositoryInterface
from ..utils import ensure_directory_exists
from ..logging_config import get_logger

logger = get_logger("security_repository")

ALARM_STATUS_KEY = "alarm_status"
ARMING_STATUS_KEY = "arming_status"


class InMemorySecurityRepository(SecurityRepositoryInterface):
    """Repository kept entirely in process memory."""

    def __init__(self):
        self._alarm_status = AlarmStatus.NO_ALARM
        self._arming_status = ArmingStatus.DISARMED
        self._sensors: Dict[Sensor, Sensor] = {}
        self._lock = threading.Lock()

    def get_alarm_status(self) -> AlarmStatus:
        return self._alarm_status

    def set_alarm_status(self, alarm_status: AlarmStatus) -> None:
        self._alarm_status = alarm_status

    def get_arming_status(self) -> ArmingStatus:
        return self._arming_status

    def set_arming_status(self, arming_status: ArmingStatus) -> None:
        self._arming_status = arming_status

    def get_sensors(self) -> Set[Sensor]:
        with self._lock:
            return set(self._sensors.values())

    def add_sensor(self, sensor: Sensor) -> None:
        with self._lock:
            self._sensors[sensor] = sensor

    def remove_sensor(self, sensor: Sensor) -> None:
        with self._lock:
            self._sensors.pop(sensor, None)

    def update_sensor(self, sensor: Sensor) -> None:
        with self._lock:
            if sensor in self._sensors:
                self._sensors[sensor] = sensor


class SqliteSecurityRepository(SecurityRepositoryInterface):
    """Repository persisted to a SQLite database file."""

    def __init__(self, database_path: str = "data/security.db"):
        """
        Initialize SQLite repository.

        Args:
            database_path: Path to SQLite database file
        """
        self.database_path = database_path
        self._initialize_database()

    def _initialize_database(self) -> None:
        directory = os.path.dirname(self.database_path)
        if directory:
            ensure_directory_exists(directory)

        with sqlite3.connect(self.database_path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS sensors (
                    name TEXT NOT NULL,
                    sensor_type TEXT NOT NULL,
                    active INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (name, sensor_type)
                )
            """)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS system_status (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            conn.commit()

        logger.info(f"Security database initialized at {self.database_path}")

    def _read_status(self, key: str) -> str:
        with sqlite3.connect(self.database_path) as conn:
            row = conn.execute(
                "SELECT value FROM system_status WHERE key = ?", (key,)
            ).fetchone()
        return row[0] if row else ""

    def _write_status(self, key: str, value: str) -> None:
        with sqlite3.connect(self.database_path) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO system_status (key, value) VALUES (?, ?)",
                (key, value)
            )
            conn.commit()

    def get_alarm_status(self) -> AlarmStatus:
        value = self._read_status(ALARM_STATUS_KEY)
        try:
            return AlarmStatus(value)
        except ValueError:
            return AlarmStatus.NO_ALARM

    def set_alarm_status(self, alarm_status: AlarmStatus) -> None:
        self._write_status(ALARM_STATUS_KEY, alarm_status.value)

    def get_arming_status(self) -> ArmingStatus:
        value = self._read_status(ARMING_STATUS_KEY)
        try:
            return ArmingStatus(value)
        except ValueError:
            return ArmingStatus.DISARMED

    def set_arming_status(self, arming_status: ArmingStatus) -> None:
        self._write_status(ARMING_STATUS_KEY, arming_status.value)

    def get_sensors(self) -> Set[Sensor]:
        sensors = set()
        with sqlite3.connect(self.database_path) as conn:
            for name, sensor_type, active in conn.execute(
                    "SELECT name, sensor_type, active FROM sensors"):
                try:
                    sensors.add(Sensor(name, SensorType(sensor_type), bool(active)))
                except ValueError:
                    logger.warning(f"Skipping sensor {name} with unknown type {sensor_type}")
        return sensors

    def add_sensor(self, sensor: Sensor) -> None:
        with sqlite3.connect(self.database_path) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO sensors (name, sensor_type, active) VALUES (?, ?, ?)",
                (sensor.name, sensor.sensor_type.value, int(sensor.active))
            )
            conn.commit()

    def remove_sensor(self, sensor: Sensor) -> None:
        with sqlite3.connect(self.database_path) as conn:
            conn.execute(
                "DELETE FROM sensors WHERE name = ? AND sensor_type = ?",
                (sensor.name, sensor.sensor_type.value)
            )
            conn.commit()

    def update_sensor(self, sensor: Sensor) -> None:
        with sqlite3.connect(self.database_path) as conn:
            conn.execute(
                "UPDATE sensors SET active = ? WHERE name = ? AND sensor_type = ?",
                (int(sensor.active), sensor.name, sensor.sensor_type.value)
            )
            conn.commit()


def create_repository(config: SystemConfig) -> SecurityRepositoryInterface:
    """Build the repository selected by the configuration."""
    if config.repository_backend == "sqlite":
        return SqliteSecurityRepository(config.database_path)
    if config.repository_backend != "memory":
        logger.warning(f"Unknown repository backend '{config.repository_backend}', using memory")
    return InMemorySecurityRepository()
