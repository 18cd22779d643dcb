"""Flask control API for the Catpoint security panel."""

from typing import Optional, Tuple

from flask import Flask, jsonify, request

from ..config.defaults import SYSTEM_CONSTANTS
from ..exceptions import ImageLoadError
from ..models.security import ArmingStatus, Sensor, SensorType
from ..services.image_service import blank_frame, decode_image
from ..services.security_service import SecurityService
from ..services.status_listeners import StatusHistoryListener
from ..utils import parse_enum
from ..logging_config import get_logger

logger = get_logger("web_app")


def _error(message: str, status_code: int) -> Tuple:
    return jsonify({
        'success': False,
        'error': message
    }), status_code


class CatpointWebApp:
    """JSON API standing in for the panel's display, control, sensor and image panels."""

    def __init__(self, security_service: SecurityService,
                 history_listener: Optional[StatusHistoryListener] = None):
        self.app = Flask(__name__)
        self.security_service = security_service

        self.history_listener = history_listener or StatusHistoryListener()
        self.security_service.add_status_listener(self.history_listener)

        self.app.config['MAX_CONTENT_LENGTH'] = SYSTEM_CONSTANTS["MAX_UPLOAD_SIZE_MB"] * 1024 * 1024

        self._setup_routes()

        logger.info("Catpoint web API initialized")

    def _find_sensor(self, sensor_type: str, name: str) -> Optional[Sensor]:
        parsed_type = parse_enum(SensorType, sensor_type)
        if parsed_type is None:
            return None
        key = Sensor(name, parsed_type)
        return next((s for s in self.security_service.get_sensors() if s == key), None)

    def _setup_routes(self):
        """Setup Flask routes."""

        @self.app.route('/api/status')
        def api_status():
            """Get alarm, arming and sensor state."""
            return jsonify({
                'success': True,
                'data': self.security_service.get_status()
            })

        @self.app.route('/api/arming', methods=['POST'])
        def api_set_arming():
            """Change the arming status."""
            data = request.get_json(silent=True) or {}
            arming_status = parse_enum(ArmingStatus, data.get('status'))
            if arming_status is None:
                return _error(f"Unknown arming status: {data.get('status')!r}", 400)

            try:
                self.security_service.set_arming_status(arming_status)
            except Exception as e:
                logger.error(f"Error setting arming status: {e}")
                return _error(str(e), 500)

            return jsonify({
                'success': True,
                'data': self.security_service.get_status()
            })

        @self.app.route('/api/sensors', methods=['GET'])
        def api_get_sensors():
            """List sensors in display order."""
            sensors = sorted(self.security_service.get_sensors())
            return jsonify({
                'success': True,
                'data': [sensor.to_dict() for sensor in sensors]
            })

        @self.app.route('/api/sensors', methods=['POST'])
        def api_add_sensor():
            """Register a new sensor."""
            data = request.get_json(silent=True) or {}
            name = str(data.get('name') or '').strip()
            sensor_type = parse_enum(SensorType, data.get('sensor_type'))
            if not name:
                return _error("Sensor name is required", 400)
            if sensor_type is None:
                return _error(f"Unknown sensor type: {data.get('sensor_type')!r}", 400)

            sensor = Sensor(name, sensor_type)
            self.security_service.add_sensor(sensor)
            return jsonify({
                'success': True,
                'data': sensor.to_dict()
            }), 201

        @self.app.route('/api/sensors/<sensor_type>/<name>', methods=['DELETE'])
        def api_remove_sensor(sensor_type, name):
            """Remove a sensor. Removing an unknown sensor succeeds."""
            parsed_type = parse_enum(SensorType, sensor_type)
            if parsed_type is None:
                return _error(f"Unknown sensor type: {sensor_type!r}", 400)

            self.security_service.remove_sensor(Sensor(name, parsed_type))
            return jsonify({
                'success': True,
                'message': f"Sensor {name} removed"
            })

        @self.app.route('/api/sensors/<sensor_type>/<name>/activation', methods=['POST'])
        def api_change_activation(sensor_type, name):
            """Activate or deactivate a sensor."""
            data = request.get_json(silent=True) or {}
            active = data.get('active')
            if not isinstance(active, bool):
                return _error("Field 'active' must be true or false", 400)

            sensor = self._find_sensor(sensor_type, name)
            if sensor is None:
                return _error(f"Sensor not found: {sensor_type}/{name}", 404)

            try:
                self.security_service.change_sensor_activation_status(sensor, active)
            except Exception as e:
                logger.error(f"Error changing sensor activation: {e}")
                return _error(str(e), 500)

            return jsonify({
                'success': True,
                'data': {
                    'sensor': sensor.to_dict(),
                    'alarm_status': self.security_service.get_alarm_status().name
                }
            })

        @self.app.route('/api/camera', methods=['POST'])
        def api_process_image():
            """Scan a camera frame for cats."""
            upload = request.files.get('image')
            data = upload.read() if upload is not None else request.get_data()

            try:
                frame = decode_image(data) if data else blank_frame()
            except ImageLoadError as e:
                return _error(str(e), 400)

            try:
                cat_present = self.security_service.process_image(frame)
            except Exception as e:
                logger.error(f"Error processing camera image: {e}")
                return _error(str(e), 500)

            return jsonify({
                'success': True,
                'data': {
                    'cat_detected': cat_present,
                    'alarm_status': self.security_service.get_alarm_status().name
                }
            })

        @self.app.route('/api/events')
        def api_events():
            """Recent status events, oldest first."""
            limit = request.args.get('limit', type=int)
            events = self.history_listener.get_events(limit)
            return jsonify({
                'success': True,
                'data': [event.to_dict() for event in events]
            })

        @self.app.route('/api/health')
        def api_health():
            """Error statistics for the running components."""
            return jsonify({
                'success': True,
                'data': self.security_service.error_handler.get_error_stats()
            })

    def run(self, host='127.0.0.1', port=5000, debug=False):
        """Run the Flask application."""
        logger.info(f"Starting Catpoint web API on {host}:{port}")
        self.app.run(host=host, port=port, debug=debug, threaded=True)

    def get_app(self):
        """Get the Flask app instance for external WSGI servers."""
        return self.app


def create_app(security_service: SecurityService,
               history_listener: Optional[StatusHistoryListener] = None) -> Flask:
    """Factory function to create Flask app."""
    web_app = CatpointWebApp(security_service, history_listener)
    return web_app.get_app()
