"""Unit tests for the security service alarm engine."""

import unittest
from unittest.mock import Mock, call
import tempfile
import shutil
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np

from catpoint_security.models.security import AlarmStatus, ArmingStatus, Sensor, SensorType
from catpoint_security.services.error_handler import ErrorHandler, ComponentStatus
from catpoint_security.services.interfaces import (
    ImageServiceInterface,
    SecurityRepositoryInterface,
    StatusListenerInterface
)
from catpoint_security.services.security_repository import (
    InMemorySecurityRepository,
    SqliteSecurityRepository
)
from catpoint_security.services.security_service import SecurityService


class TestSensorActivationWithMockRepository(unittest.TestCase):
    """Sensor activation rules checked against a mocked repository."""

    def setUp(self):
        """Set up test fixtures."""
        self.repository = Mock(spec=SecurityRepositoryInterface)
        self.image_service = Mock(spec=ImageServiceInterface)
        self.service = SecurityService(self.repository, self.image_service)
        self.sensor = Sensor("Sensor", SensorType.DOOR)
        self.repository.get_sensors.return_value = {self.sensor}

    def _given(self, arming_status, alarm_status, sensor_active=False):
        self.repository.get_arming_status.return_value = arming_status
        self.repository.get_alarm_status.return_value = alarm_status
        self.sensor.active = sensor_active

    def test_activation_escalates_one_step_when_armed(self):
        cases = [
            (ArmingStatus.ARMED_HOME, AlarmStatus.NO_ALARM, AlarmStatus.PENDING_ALARM),
            (ArmingStatus.ARMED_AWAY, AlarmStatus.NO_ALARM, AlarmStatus.PENDING_ALARM),
            (ArmingStatus.ARMED_HOME, AlarmStatus.PENDING_ALARM, AlarmStatus.ALARM),
            (ArmingStatus.ARMED_AWAY, AlarmStatus.PENDING_ALARM, AlarmStatus.ALARM),
        ]
        for arming, current, expected in cases:
            with self.subTest(arming=arming, current=current):
                self.repository.reset_mock()
                self._given(arming, current)

                self.service.change_sensor_activation_status(self.sensor, True)

                self.repository.set_alarm_status.assert_called_once_with(expected)

    def test_reactivating_active_sensor_escalates(self):
        self._given(ArmingStatus.ARMED_HOME, AlarmStatus.PENDING_ALARM, sensor_active=True)

        self.service.change_sensor_activation_status(self.sensor, True)

        self.repository.set_alarm_status.assert_called_once_with(AlarmStatus.ALARM)

    def test_activation_at_alarm_does_not_change_status(self):
        for was_active in (False, True):
            with self.subTest(was_active=was_active):
                self.repository.reset_mock()
                self._given(ArmingStatus.ARMED_HOME, AlarmStatus.ALARM, sensor_active=was_active)

                self.service.change_sensor_activation_status(self.sensor, True)

                self.repository.set_alarm_status.assert_not_called()

    def test_activation_ignored_when_disarmed(self):
        for current in (AlarmStatus.NO_ALARM, AlarmStatus.PENDING_ALARM):
            with self.subTest(current=current):
                self.repository.reset_mock()
                self._given(ArmingStatus.DISARMED, current)

                self.service.change_sensor_activation_status(self.sensor, True)

                self.repository.set_alarm_status.assert_not_called()
                self.assertTrue(self.sensor.active)
                self.repository.update_sensor.assert_called_once_with(self.sensor)

    def test_deactivating_active_sensor_de_escalates(self):
        cases = [
            (AlarmStatus.PENDING_ALARM, AlarmStatus.NO_ALARM),
            (AlarmStatus.ALARM, AlarmStatus.PENDING_ALARM),
        ]
        for current, expected in cases:
            with self.subTest(current=current):
                self.repository.reset_mock()
                self._given(ArmingStatus.ARMED_HOME, current, sensor_active=True)

                self.service.change_sensor_activation_status(self.sensor, False)

                self.repository.set_alarm_status.assert_called_once_with(expected)
                self.assertFalse(self.sensor.active)

    def test_deactivating_active_sensor_at_no_alarm_keeps_status(self):
        self._given(ArmingStatus.ARMED_HOME, AlarmStatus.NO_ALARM, sensor_active=True)

        self.service.change_sensor_activation_status(self.sensor, False)

        self.repository.set_alarm_status.assert_not_called()

    def test_deactivating_inactive_sensor_never_changes_status(self):
        for arming in ArmingStatus:
            for current in AlarmStatus:
                with self.subTest(arming=arming, current=current):
                    self.repository.reset_mock()
                    self._given(arming, current, sensor_active=False)

                    self.service.change_sensor_activation_status(self.sensor, False)

                    self.repository.set_alarm_status.assert_not_called()
                    self.repository.update_sensor.assert_called_once_with(self.sensor)

    def test_sensor_state_always_persisted(self):
        for arming in ArmingStatus:
            for current in AlarmStatus:
                for requested in (True, False):
                    with self.subTest(arming=arming, current=current, requested=requested):
                        self.repository.reset_mock()
                        self._given(arming, current, sensor_active=not requested)

                        self.service.change_sensor_activation_status(self.sensor, requested)

                        self.assertEqual(self.sensor.active, requested)
                        self.repository.update_sensor.assert_called_once_with(self.sensor)

    def test_stored_flag_wins_over_stale_copy(self):
        self._given(ArmingStatus.ARMED_HOME, AlarmStatus.PENDING_ALARM)
        self.repository.get_sensors.return_value = {Sensor("Sensor", SensorType.DOOR)}
        stale = Sensor("Sensor", SensorType.DOOR, active=True)

        self.service.change_sensor_activation_status(stale, False)

        self.repository.set_alarm_status.assert_not_called()
        self.repository.update_sensor.assert_called_once_with(stale)


class TestArmingStatusWithMockRepository(unittest.TestCase):
    """Arming rules checked against a mocked repository."""

    def setUp(self):
        """Set up test fixtures."""
        self.repository = Mock(spec=SecurityRepositoryInterface)
        self.repository.get_alarm_status.return_value = AlarmStatus.PENDING_ALARM
        self.repository.get_arming_status.return_value = ArmingStatus.ARMED_HOME
        self.image_service = Mock(spec=ImageServiceInterface)
        self.service = SecurityService(self.repository, self.image_service)

        self.sensors = {
            Sensor("FrontDoorSensor", SensorType.DOOR, active=True),
            Sensor("LivingRoomWindowSensor", SensorType.WINDOW, active=True),
            Sensor("LivingRoomMotionSensor", SensorType.MOTION, active=True),
        }
        self.repository.get_sensors.return_value = self.sensors

    def test_disarming_forces_no_alarm(self):
        for current in AlarmStatus:
            with self.subTest(current=current):
                self.repository.reset_mock()
                self.repository.get_alarm_status.return_value = current

                self.service.set_arming_status(ArmingStatus.DISARMED)

                self.repository.set_alarm_status.assert_called_once_with(AlarmStatus.NO_ALARM)
                self.repository.set_arming_status.assert_called_once_with(ArmingStatus.DISARMED)

    def test_arming_resets_all_sensors(self):
        for arming in (ArmingStatus.ARMED_HOME, ArmingStatus.ARMED_AWAY):
            with self.subTest(arming=arming):
                for sensor in self.sensors:
                    sensor.active = True

                self.service.set_arming_status(arming)

                for sensor in self.sensors:
                    self.assertFalse(sensor.active, f"Sensor should be inactive: {sensor.name}")
                self.repository.set_arming_status.assert_called_with(arming)

    def test_arming_home_with_cat_forces_alarm(self):
        self.image_service.classify.return_value = True
        self.service.process_image(np.zeros((4, 4, 3), dtype=np.uint8))
        self.repository.reset_mock()

        self.service.set_arming_status(ArmingStatus.ARMED_HOME)

        self.repository.set_alarm_status.assert_called_once_with(AlarmStatus.ALARM)
        # Cat override skips the sensor reset
        self.repository.update_sensor.assert_not_called()

    def test_arming_away_with_cat_still_resets_sensors(self):
        self.image_service.classify.return_value = True
        self.service.process_image(np.zeros((4, 4, 3), dtype=np.uint8))

        self.service.set_arming_status(ArmingStatus.ARMED_AWAY)

        for sensor in self.sensors:
            self.assertFalse(sensor.active)

    def test_unknown_arming_status_is_ignored(self):
        self.service.set_arming_status("ARMED_ON_THE_MOON")

        self.repository.set_arming_status.assert_not_called()
        self.repository.set_alarm_status.assert_not_called()


class TestProcessImageWithMockRepository(unittest.TestCase):
    """Camera rules checked against a mocked repository."""

    def setUp(self):
        """Set up test fixtures."""
        self.repository = Mock(spec=SecurityRepositoryInterface)
        self.repository.get_alarm_status.return_value = AlarmStatus.PENDING_ALARM
        self.repository.get_arming_status.return_value = ArmingStatus.ARMED_HOME
        self.repository.get_sensors.return_value = set()
        self.image_service = Mock(spec=ImageServiceInterface)
        self.service = SecurityService(self.repository, self.image_service)
        self.frame = np.zeros((8, 8, 3), dtype=np.uint8)

    def test_classifier_called_with_fixed_threshold(self):
        self.image_service.classify.return_value = False

        self.service.process_image(self.frame)

        self.image_service.classify.assert_called_once_with(self.frame, 50.0)

    def test_cat_while_armed_home_forces_alarm(self):
        self.image_service.classify.return_value = True

        result = self.service.process_image(self.frame)

        self.assertTrue(result)
        self.repository.set_alarm_status.assert_called_once_with(AlarmStatus.ALARM)

    def test_cat_while_not_armed_home_does_not_alarm(self):
        self.image_service.classify.return_value = True
        for arming in (ArmingStatus.DISARMED, ArmingStatus.ARMED_AWAY):
            with self.subTest(arming=arming):
                self.repository.reset_mock()
                self.repository.get_arming_status.return_value = arming

                self.service.process_image(self.frame)

                self.repository.set_alarm_status.assert_called_once_with(AlarmStatus.NO_ALARM)

    def test_no_cat_with_active_sensor_keeps_status(self):
        self.image_service.classify.return_value = False
        self.repository.get_sensors.return_value = {
            Sensor("ActiveSensor", SensorType.DOOR, active=True),
            Sensor("IdleSensor", SensorType.WINDOW, active=False),
        }

        self.service.process_image(self.frame)

        self.repository.set_alarm_status.assert_called_once_with(AlarmStatus.PENDING_ALARM)

    def test_no_cat_with_inactive_sensors_clears_alarm(self):
        self.image_service.classify.return_value = False
        self.repository.get_sensors.return_value = {Sensor("Sensor", SensorType.DOOR)}

        self.service.process_image(self.frame)

        self.repository.set_alarm_status.assert_called_once_with(AlarmStatus.NO_ALARM)

    def test_cat_flag_overwritten_each_frame(self):
        self.image_service.classify.side_effect = [True, False]

        self.service.process_image(self.frame)
        self.assertTrue(self.service.is_cat_detected())
        self.service.process_image(self.frame)
        self.assertFalse(self.service.is_cat_detected())

    def test_cat_flag_is_per_instance(self):
        self.image_service.classify.return_value = True
        other = SecurityService(Mock(spec=SecurityRepositoryInterface), Mock(spec=ImageServiceInterface))

        self.service.process_image(self.frame)

        self.assertTrue(self.service.is_cat_detected())
        self.assertFalse(other.is_cat_detected())


class TestStatusListeners(unittest.TestCase):
    """Listener registration and fan-out."""

    def setUp(self):
        """Set up test fixtures."""
        self.repository = InMemorySecurityRepository()
        self.image_service = Mock(spec=ImageServiceInterface)
        self.image_service.classify.return_value = False
        self.error_handler = ErrorHandler()
        self.service = SecurityService(self.repository, self.image_service,
                                       error_handler=self.error_handler)
        self.listener = Mock(spec=StatusListenerInterface)
        self.service.add_status_listener(self.listener)

    def test_alarm_write_notifies_even_when_unchanged(self):
        self.service.set_alarm_status(AlarmStatus.NO_ALARM)
        self.service.set_alarm_status(AlarmStatus.NO_ALARM)

        self.assertEqual(self.listener.notify.call_args_list,
                         [call(AlarmStatus.NO_ALARM), call(AlarmStatus.NO_ALARM)])

    def test_arming_change_fires_sensor_status_changed(self):
        self.service.set_arming_status(ArmingStatus.ARMED_AWAY)

        self.listener.sensor_status_changed.assert_called_once_with()

    def test_process_image_fires_cat_detected(self):
        self.service.process_image(np.zeros((2, 2, 3), dtype=np.uint8))

        self.listener.cat_detected.assert_called_once_with(False)
        self.listener.notify.assert_called_once_with(AlarmStatus.NO_ALARM)

    def test_duplicate_registration_has_no_effect(self):
        self.service.add_status_listener(self.listener)

        self.service.set_alarm_status(AlarmStatus.PENDING_ALARM)

        self.listener.notify.assert_called_once_with(AlarmStatus.PENDING_ALARM)
        self.assertEqual(len(self.service.get_status_listeners()), 1)

    def test_removed_listener_not_notified(self):
        self.service.remove_status_listener(self.listener)

        self.service.set_alarm_status(AlarmStatus.ALARM)

        self.listener.notify.assert_not_called()

    def test_removing_unknown_listener_is_noop(self):
        self.service.remove_status_listener(Mock(spec=StatusListenerInterface))

        self.assertEqual(self.service.get_status_listeners(), {self.listener})

    def test_failing_listener_is_isolated(self):
        failing = Mock(spec=StatusListenerInterface)
        failing.notify.side_effect = RuntimeError("display crashed")
        healthy = Mock(spec=StatusListenerInterface)
        self.service.add_status_listener(failing)
        self.service.add_status_listener(healthy)

        self.service.set_alarm_status(AlarmStatus.ALARM)

        healthy.notify.assert_called_once_with(AlarmStatus.ALARM)
        self.assertEqual(self.repository.get_alarm_status(), AlarmStatus.ALARM)
        self.assertEqual(self.error_handler.component_error_counts["status_listener"], 1)
        self.assertEqual(self.error_handler.get_component_health()["status_listener"],
                         ComponentStatus.DEGRADED)

    def test_failing_listener_propagates_when_not_isolated(self):
        self.service.isolate_listener_failures = False
        failing = Mock(spec=StatusListenerInterface)
        failing.notify.side_effect = RuntimeError("display crashed")
        self.service.add_status_listener(failing)

        with self.assertRaises(RuntimeError):
            self.service.set_alarm_status(AlarmStatus.ALARM)


class TestSecurityServiceScenarios(unittest.TestCase):
    """End-to-end scenarios against the in-memory repository."""

    def setUp(self):
        """Set up test fixtures."""
        self.repository = InMemorySecurityRepository()
        self.image_service = Mock(spec=ImageServiceInterface)
        self.service = SecurityService(self.repository, self.image_service)
        self.frame = np.zeros((8, 8, 3), dtype=np.uint8)

    def test_door_activated_twice_reaches_alarm(self):
        door = Sensor("DoorA", SensorType.DOOR)
        self.service.add_sensor(door)
        self.repository.set_arming_status(ArmingStatus.ARMED_HOME)
        self.repository.set_alarm_status(AlarmStatus.NO_ALARM)

        self.service.change_sensor_activation_status(door, True)
        self.assertEqual(self.service.get_alarm_status(), AlarmStatus.PENDING_ALARM)

        self.service.change_sensor_activation_status(door, True)
        self.assertEqual(self.service.get_alarm_status(), AlarmStatus.ALARM)

    def test_rearming_away_deactivates_all_sensors(self):
        sensors = [
            Sensor("FrontDoor", SensorType.DOOR, active=True),
            Sensor("Kitchen", SensorType.WINDOW, active=True),
            Sensor("Hallway", SensorType.MOTION, active=True),
        ]
        for sensor in sensors:
            self.service.add_sensor(sensor)
        self.repository.set_arming_status(ArmingStatus.ARMED_AWAY)
        self.repository.set_alarm_status(AlarmStatus.PENDING_ALARM)

        self.service.set_arming_status(ArmingStatus.ARMED_AWAY)

        self.assertTrue(all(not s.active for s in self.service.get_sensors()))
        self.assertEqual(self.service.get_alarm_status(), AlarmStatus.NO_ALARM)
        self.assertEqual(self.service.get_arming_status(), ArmingStatus.ARMED_AWAY)

    def test_cat_flag_survives_into_arming_home(self):
        self.repository.set_arming_status(ArmingStatus.ARMED_HOME)
        self.image_service.classify.return_value = True

        self.service.process_image(self.frame)
        self.assertEqual(self.service.get_alarm_status(), AlarmStatus.ALARM)

        self.service.set_arming_status(ArmingStatus.ARMED_HOME)
        self.assertEqual(self.service.get_alarm_status(), AlarmStatus.ALARM)

    def test_cat_seen_while_disarmed_alarms_on_arming_home(self):
        self.image_service.classify.return_value = True
        self.service.process_image(self.frame)
        self.assertEqual(self.service.get_alarm_status(), AlarmStatus.NO_ALARM)

        self.service.set_arming_status(ArmingStatus.ARMED_HOME)

        self.assertEqual(self.service.get_alarm_status(), AlarmStatus.ALARM)

    def test_cleared_cat_then_arming_home_resets_sensors(self):
        window = Sensor("Bedroom", SensorType.WINDOW, active=True)
        self.service.add_sensor(window)
        self.image_service.classify.side_effect = [True, False]
        self.service.process_image(self.frame)
        self.service.process_image(self.frame)

        self.service.set_arming_status(ArmingStatus.ARMED_HOME)

        self.assertFalse(window.active)
        self.assertEqual(self.service.get_alarm_status(), AlarmStatus.NO_ALARM)

    def test_disarm_after_alarm_records_sensor_but_stays_quiet(self):
        motion = Sensor("Garage", SensorType.MOTION)
        self.service.add_sensor(motion)
        self.service.set_arming_status(ArmingStatus.ARMED_AWAY)
        self.service.change_sensor_activation_status(motion, True)
        self.service.change_sensor_activation_status(motion, True)
        self.assertEqual(self.service.get_alarm_status(), AlarmStatus.ALARM)

        self.service.set_arming_status(ArmingStatus.DISARMED)
        self.assertEqual(self.service.get_alarm_status(), AlarmStatus.NO_ALARM)

        self.service.change_sensor_activation_status(motion, True)
        self.assertEqual(self.service.get_alarm_status(), AlarmStatus.NO_ALARM)
        self.assertTrue(next(iter(self.service.get_sensors())).active)

    def test_remove_unknown_sensor_is_noop(self):
        self.service.remove_sensor(Sensor("Ghost", SensorType.DOOR))

        self.assertEqual(self.service.get_sensors(), set())

    def test_status_snapshot(self):
        self.service.add_sensor(Sensor("B", SensorType.WINDOW))
        self.service.add_sensor(Sensor("A", SensorType.DOOR, active=True))

        status = self.service.get_status()

        self.assertEqual(status["alarm_status"], "NO_ALARM")
        self.assertEqual(status["alarm_description"], "Cool and Good")
        self.assertEqual(status["arming_status"], "DISARMED")
        self.assertEqual(status["arming_color"], [120, 200, 30])
        self.assertFalse(status["cat_detected"])
        self.assertEqual([s["name"] for s in status["sensors"]], ["A", "B"])


class TestSecurityServiceWithSqliteRepository(unittest.TestCase):
    """Scenarios where every read hands out a fresh sensor copy."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = tempfile.mkdtemp()
        self.repository = SqliteSecurityRepository(os.path.join(self.test_dir, "security.db"))
        self.image_service = Mock(spec=ImageServiceInterface)
        self.service = SecurityService(self.repository, self.image_service)
        self.service.add_sensor(Sensor("DoorA", SensorType.DOOR, active=True))

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_two_copies_deactivated_step_down_once(self):
        self.repository.set_arming_status(ArmingStatus.ARMED_AWAY)
        self.repository.set_alarm_status(AlarmStatus.ALARM)
        first = next(iter(self.service.get_sensors()))
        second = next(iter(self.service.get_sensors()))
        self.assertIsNot(first, second)

        self.service.change_sensor_activation_status(first, False)
        self.service.change_sensor_activation_status(second, False)

        self.assertEqual(self.service.get_alarm_status(), AlarmStatus.PENDING_ALARM)
        self.assertFalse(next(iter(self.service.get_sensors())).active)

    def test_door_activated_twice_reaches_alarm(self):
        self.repository.set_arming_status(ArmingStatus.ARMED_HOME)

        self.service.change_sensor_activation_status(next(iter(self.service.get_sensors())), True)
        self.assertEqual(self.service.get_alarm_status(), AlarmStatus.PENDING_ALARM)

        self.service.change_sensor_activation_status(next(iter(self.service.get_sensors())), True)
        self.assertEqual(self.service.get_alarm_status(), AlarmStatus.ALARM)

    def test_arming_resets_stored_sensors(self):
        self.repository.set_arming_status(ArmingStatus.ARMED_AWAY)
        self.repository.set_alarm_status(AlarmStatus.PENDING_ALARM)

        self.service.set_arming_status(ArmingStatus.ARMED_HOME)

        self.assertFalse(next(iter(self.service.get_sensors())).active)
        self.assertEqual(self.service.get_alarm_status(), AlarmStatus.NO_ALARM)


if __name__ == '__main__':
    unittest.main()
