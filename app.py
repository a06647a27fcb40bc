"""
Quizboard - real-time lobby server for trivia game boards.
Main Flask application entry point focusing on app creation, dependency injection, and service wiring.
"""

from flask import Flask
from flask_socketio import SocketIO
import logging
import atexit

from container import configure_container, get_container
from config_factory import load_config, ConfigurationFactory

# Initialize Flask app
app = Flask(__name__)

# Load and apply configuration
app_config = load_config()
config_factory = ConfigurationFactory()
app.config.update(config_factory.get_flask_config())

# Production restricts to the configured allowlist (same-origin only when empty);
# development and testing stay permissive for local workflows
if app_config.is_production:
    cors_allowed = app_config.allowed_origins or []
else:
    cors_allowed = "*"
socketio = SocketIO(app, cors_allowed_origins=cors_allowed, async_mode=app_config.socketio_async_mode)

# Configure logging
logging.basicConfig(
    level=getattr(logging, app_config.log_level.upper(), logging.INFO),
    format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
)
logger = logging.getLogger(__name__)

# Configure service container with dependencies
container = configure_container(socketio=socketio)

# Register REST endpoints
from src.routes.api import create_api_blueprint
app.register_blueprint(create_api_blueprint())

# Register Socket.IO handlers
from src.handlers.socket_handlers import register_socket_handlers
register_socket_handlers(socketio)

# Boards hosted outside this server can be pre-opened by pin
validation_service = container.get('ValidationService')
for seed_pin in app_config.seed_pins:
    container.get('MembershipService').open_board(validation_service.validate_pin(seed_pin))

# The sweep runs on its own thread; tests drive it explicitly with sweep_once()
if not app_config.is_testing:
    container.get('InactivitySweepService').start()


def cleanup_on_exit():
    """Clean up resources on application exit."""
    logger.info("Shutting down Quizboard server...")
    get_container().shutdown()


atexit.register(cleanup_on_exit)

if __name__ == '__main__':
    logger.info(f"Starting Quizboard server on {app_config.host}:{app_config.port}")
    try:
        socketio.run(app, host=app_config.host, port=app_config.port, debug=app_config.debug)
    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
    finally:
        cleanup_on_exit()
