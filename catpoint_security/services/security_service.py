"""Alarm decision engine for the security panel.

The service receives three kinds of event: arming status changes, sensor
activation changes and classified camera frames. From those and the state
held by the repository it decides the next alarm status, writes it back and
fans the change out to the registered status listeners.

All public operations are serialized behind a single re-entrant lock, so the
read-modify-write sequences below are atomic with respect to each other even
when the web API serves requests on several threads.
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional, Set

from ..config.defaults import SYSTEM_CONSTANTS
from ..models.security import AlarmStatus, ArmingStatus, Sensor
from .error_handler import ErrorHandler, ErrorSeverity
from .interfaces import (
    ImageServiceInterface,
    NDArray,
    SecurityRepositoryInterface,
    StatusListenerInterface
)
from ..logging_config import get_logger, log_with_context

logger = get_logger("security_service")

LISTENER_COMPONENT = "status_listener"


class SecurityService:
    """Forwards panel events to the repository and decides alarm transitions."""

    def __init__(self,
                 security_repository: SecurityRepositoryInterface,
                 image_service: ImageServiceInterface,
                 error_handler: Optional[ErrorHandler] = None,
                 confidence_threshold: float = SYSTEM_CONSTANTS["CAT_CONFIDENCE_THRESHOLD"],
                 isolate_listener_failures: bool = True):
        """
        Initialize the security service.

        Args:
            security_repository: Source of truth for sensors and statuses
            image_service: Classifier used to look for cats in camera frames
            error_handler: Records listener failures; a private one is created if omitted
            confidence_threshold: Confidence passed to the classifier
            isolate_listener_failures: Keep notifying remaining listeners when one raises
        """
        self.security_repository = security_repository
        self.image_service = image_service
        self.error_handler = error_handler or ErrorHandler()
        self.confidence_threshold = confidence_threshold
        self.isolate_listener_failures = isolate_listener_failures

        # Insertion-ordered set of listeners
        self._status_listeners: Dict[StatusListenerInterface, None] = {}
        self._cat_detected = False
        self._lock = threading.RLock()

        self.error_handler.register_component(LISTENER_COMPONENT)

    # Arming

    def set_arming_status(self, arming_status: ArmingStatus) -> None:
        """Change the arming status, adjusting alarm status and sensors to match."""
        if not isinstance(arming_status, ArmingStatus):
            logger.warning(f"Ignoring unknown arming status: {arming_status!r}")
            return

        with self._lock:
            if arming_status == ArmingStatus.ARMED_HOME and self._cat_detected:
                self.set_alarm_status(AlarmStatus.ALARM)
            elif arming_status == ArmingStatus.DISARMED:
                self.set_alarm_status(AlarmStatus.NO_ALARM)
            else:
                for sensor in sorted(self.get_sensors()):
                    self.change_sensor_activation_status(sensor, False)

            self.security_repository.set_arming_status(arming_status)
            logger.info(f"Arming status set to {arming_status.name}")

            self._notify_listeners(lambda listener: listener.sensor_status_changed())

    def get_arming_status(self) -> ArmingStatus:
        return self.security_repository.get_arming_status()

    # Camera

    def process_image(self, current_camera_image: NDArray) -> bool:
        """Classify a camera frame and update the alarm status from the verdict.

        Returns the classifier's verdict.
        """
        with self._lock:
            cat_present = bool(self.image_service.classify(
                current_camera_image, self.confidence_threshold))
            self._cat_detected = cat_present

            if cat_present and self.get_arming_status() == ArmingStatus.ARMED_HOME:
                new_status = AlarmStatus.ALARM
            elif any(sensor.active for sensor in self.get_sensors()):
                new_status = self.get_alarm_status()
            else:
                new_status = AlarmStatus.NO_ALARM

            self.set_alarm_status(new_status)
            self._notify_listeners(lambda listener: listener.cat_detected(cat_present))

        logger.debug(f"Camera frame processed: cat_present={cat_present}")
        return cat_present

    def is_cat_detected(self) -> bool:
        """Verdict of the most recently classified frame."""
        return self._cat_detected

    # Alarm

    def set_alarm_status(self, alarm_status: AlarmStatus) -> None:
        """Persist the alarm status and notify every listener, even if unchanged."""
        if not isinstance(alarm_status, AlarmStatus):
            logger.warning(f"Ignoring unknown alarm status: {alarm_status!r}")
            return

        with self._lock:
            previous = self.security_repository.get_alarm_status()
            self.security_repository.set_alarm_status(alarm_status)
            if previous != alarm_status:
                log_with_context(logger, logging.INFO, "Alarm status changed", {
                    "from": previous.name,
                    "to": alarm_status.name,
                    "arming": self.security_repository.get_arming_status().name
                })

            self._notify_listeners(lambda listener: listener.notify(alarm_status))

    def get_alarm_status(self) -> AlarmStatus:
        return self.security_repository.get_alarm_status()

    # Sensors

    def change_sensor_activation_status(self, sensor: Sensor, active: bool) -> None:
        """Record a sensor's new activation flag and update the alarm status."""
        active = bool(active)

        with self._lock:
            alarm_status = self.security_repository.get_alarm_status()
            was_active = self._recorded_activation(sensor)

            if alarm_status in (AlarmStatus.NO_ALARM, AlarmStatus.PENDING_ALARM):
                if active:
                    self._handle_sensor_activated()
                elif was_active:
                    self._handle_sensor_deactivated()
            elif alarm_status == AlarmStatus.ALARM:
                # Already at the top of the ladder; only deactivation moves it
                if was_active and not active:
                    self._handle_sensor_deactivated()

            sensor.active = active
            self.security_repository.update_sensor(sensor)

        logger.debug(f"Sensor {sensor.name} ({sensor.sensor_type.name}) "
                     f"active={active}, was_active={was_active}")

    def _recorded_activation(self, sensor: Sensor) -> bool:
        """Activation flag the repository holds for the sensor.

        Falls back to the caller's copy when the sensor is not registered.
        """
        for stored in self.security_repository.get_sensors():
            if stored == sensor:
                return stored.active
        return sensor.active

    def _handle_sensor_activated(self) -> None:
        arming_status = self.security_repository.get_arming_status()
        if arming_status == ArmingStatus.DISARMED:
            return

        alarm_status = self.security_repository.get_alarm_status()
        if alarm_status == AlarmStatus.NO_ALARM:
            self.set_alarm_status(AlarmStatus.PENDING_ALARM)
        elif alarm_status == AlarmStatus.PENDING_ALARM:
            self.set_alarm_status(AlarmStatus.ALARM)

    def _handle_sensor_deactivated(self) -> None:
        alarm_status = self.security_repository.get_alarm_status()
        if alarm_status == AlarmStatus.PENDING_ALARM:
            self.set_alarm_status(AlarmStatus.NO_ALARM)
        elif alarm_status == AlarmStatus.ALARM:
            self.set_alarm_status(AlarmStatus.PENDING_ALARM)

    def get_sensors(self) -> Set[Sensor]:
        return self.security_repository.get_sensors()

    def add_sensor(self, sensor: Sensor) -> None:
        with self._lock:
            self.security_repository.add_sensor(sensor)
        logger.info(f"Sensor added: {sensor.name} ({sensor.sensor_type.name})")

    def remove_sensor(self, sensor: Sensor) -> None:
        with self._lock:
            self.security_repository.remove_sensor(sensor)
        logger.info(f"Sensor removed: {sensor.name} ({sensor.sensor_type.name})")

    # Listeners

    def add_status_listener(self, status_listener: StatusListenerInterface) -> None:
        with self._lock:
            self._status_listeners[status_listener] = None

    def remove_status_listener(self, status_listener: StatusListenerInterface) -> None:
        with self._lock:
            self._status_listeners.pop(status_listener, None)

    def get_status_listeners(self) -> Set[StatusListenerInterface]:
        return set(self._status_listeners)

    def _notify_listeners(self, deliver: Callable[[StatusListenerInterface], Any]) -> None:
        for listener in list(self._status_listeners):
            try:
                deliver(listener)
            except Exception as e:
                if not self.isolate_listener_failures:
                    raise
                self.error_handler.handle_error(LISTENER_COMPONENT, e, ErrorSeverity.MEDIUM)
                logger.error(f"Status listener {listener!r} failed: {e}", exc_info=True)

    def get_status(self) -> Dict[str, Any]:
        """Snapshot of the panel for display."""
        with self._lock:
            alarm_status = self.get_alarm_status()
            arming_status = self.get_arming_status()
            return {
                "alarm_status": alarm_status.name,
                "alarm_description": alarm_status.description,
                "alarm_color": list(alarm_status.color),
                "arming_status": arming_status.name,
                "arming_description": arming_status.description,
                "arming_color": list(arming_status.color),
                "cat_detected": self._cat_detected,
                "sensors": [sensor.to_dict() for sensor in sorted(self.get_sensors())]
            }
