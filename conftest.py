"""
Global pytest configuration and fixtures.
Provides service fixtures for proper dependency injection in tests.
"""

import os

import pytest

# Ensure testing environment before the app module loads its configuration
os.environ['TESTING'] = '1'
os.environ['FLASK_ENV'] = 'testing'
os.environ['SOCKETIO_ASYNC_MODE'] = 'threading'


@pytest.fixture(scope="function", autouse=True)
def reset_global_state():
    """Fresh configuration, lobby settings and container for every test."""
    from container import reset_container, configure_container
    from config_factory import reset_config, load_config
    from src.config.lobby_settings import reset_lobby_settings
    from app import socketio as app_socketio

    reset_config()
    load_config()
    reset_lobby_settings()
    reset_container()
    container = configure_container(socketio=app_socketio)

    yield

    container.shutdown()


@pytest.fixture(scope="session")
def app():
    """Flask app for testing."""
    from app import app as flask_app
    return flask_app


@pytest.fixture(scope="session")
def socketio():
    """SocketIO instance for testing."""
    from app import socketio as socketio_instance
    return socketio_instance


@pytest.fixture(scope="function")
def container():
    """The service container configured for the current test."""
    from container import get_container
    return get_container()


@pytest.fixture(scope="function")
def session_store(container):
    return container.get('SessionStore')


@pytest.fixture(scope="function")
def membership_service(container):
    """Provide MembershipService through dependency injection."""
    return container.get('MembershipService')


@pytest.fixture(scope="function")
def connection_registry(container):
    return container.get('ConnectionRegistry')


@pytest.fixture(scope="function")
def lobby_coordinator(container):
    """Provide LobbyCoordinator through dependency injection."""
    return container.get('LobbyCoordinator')


@pytest.fixture(scope="function")
def sweep_service(container):
    return container.get('InactivitySweepService')


@pytest.fixture(scope="function")
def admin_token_service(container):
    return container.get('AdminTokenService')


@pytest.fixture(scope="function")
def board(membership_service):
    """An empty board with pin 4821."""
    return membership_service.open_board('4821')


@pytest.fixture(scope="function")
def socket_client_factory(app, socketio):
    """Create connected SocketIOTestClients, disconnecting them at teardown."""
    from flask_socketio import SocketIOTestClient

    clients = []

    def create():
        client = SocketIOTestClient(app, socketio)
        clients.append(client)
        return client

    yield create

    for client in clients:
        if client.is_connected():
            client.disconnect()
