"""Service interfaces and abstract base classes."""

from abc import ABC, abstractmethod
from typing import Set

import numpy as np

from ..models.security import AlarmStatus, ArmingStatus, Sensor

NDArray = np.ndarray


class SecurityRepositoryInterface(ABC):
    """Interface for the store of sensors and system status."""

    @abstractmethod
    def get_alarm_status(self) -> AlarmStatus:
        """Get the current alarm status."""
        pass

    @abstractmethod
    def set_alarm_status(self, alarm_status: AlarmStatus) -> None:
        """Persist a new alarm status."""
        pass

    @abstractmethod
    def get_arming_status(self) -> ArmingStatus:
        """Get the current arming status."""
        pass

    @abstractmethod
    def set_arming_status(self, arming_status: ArmingStatus) -> None:
        """Persist a new arming status."""
        pass

    @abstractmethod
    def get_sensors(self) -> Set[Sensor]:
        """Get all registered sensors."""
        pass

    @abstractmethod
    def add_sensor(self, sensor: Sensor) -> None:
        """Register a sensor."""
        pass

    @abstractmethod
    def remove_sensor(self, sensor: Sensor) -> None:
        """Remove a sensor. Removing an unknown sensor is a no-op."""
        pass

    @abstractmethod
    def update_sensor(self, sensor: Sensor) -> None:
        """Persist the sensor's current activation flag."""
        pass


class ImageServiceInterface(ABC):
    """Interface for the camera image classifier."""

    @abstractmethod
    def classify(self, image: NDArray, confidence_threshold: float) -> bool:
        """Return True if the image contains a cat at the given confidence."""
        pass


class StatusListenerInterface(ABC):
    """Interface for observers of security status changes."""

    @abstractmethod
    def notify(self, alarm_status: AlarmStatus) -> None:
        """Called on every alarm status write."""
        pass

    @abstractmethod
    def cat_detected(self, cat_present: bool) -> None:
        """Called after every classified camera frame."""
        pass

    @abstractmethod
    def sensor_status_changed(self) -> None:
        """Called after the arming status changes."""
        pass
