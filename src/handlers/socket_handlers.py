"""
Socket.IO event handlers for Quizboard.

This module provides the registration function and the connection/disconnection
handlers. Lobby requests are routed through the event router into LobbyHandler.
"""

import logging

from flask import request
from flask_socketio import emit

from config_factory import get_config
from container import get_container
from .socket_event_router import setup_router
from .lobby_handler import LobbyHandler

logger = logging.getLogger(__name__)

JOIN_REQUEST = 'joinRequest'
LEAVE_REQUEST = 'leaveRequest'
RESUME_REQUEST = 'resumeRequest'


def register_socket_handlers(socketio_instance):
    """Register all socket handlers with the SocketIO instance."""
    router = setup_router(socketio_instance)
    lobby_handler = LobbyHandler()

    # Connection lifecycle doesn't go through the router
    socketio_instance.on_event('connect', handle_connect)
    socketio_instance.on_event('disconnect', handle_disconnect)

    router.register_route(JOIN_REQUEST, lobby_handler.handle_join_request)
    router.register_route(LEAVE_REQUEST, lobby_handler.handle_leave_request)
    router.register_route(RESUME_REQUEST, lobby_handler.handle_resume_request)

    router.register_with_socketio()

    logger.info(f"Registered {len(router.get_registered_events())} socket event handlers")
    return router


def handle_connect(auth=None):
    """Handle client connection with Origin enforcement in production."""
    app_config = get_config()
    origin = request.headers.get('Origin')

    if app_config.is_production:
        allowed = set(app_config.allowed_origins)
        if allowed and origin and origin not in allowed:
            logger.warning(f'Rejecting connection from disallowed Origin: {origin}')
            return False

    get_container().get('LobbyCoordinator').handle_connect(request.sid)  # type: ignore[attr-defined]
    logger.info(f'Client connected: {request.sid} from Origin: {origin}')  # type: ignore[attr-defined]
    emit('connected', {'status': 'Connected to Quizboard server'})


def handle_disconnect(reason=None):
    """Handle client disconnection. The player stays on its board until it leaves or times out."""
    logger.info(f'Client disconnected: {request.sid} ({reason})')  # type: ignore[attr-defined]
    get_container().get('LobbyCoordinator').handle_disconnect(request.sid)  # type: ignore[attr-defined]
