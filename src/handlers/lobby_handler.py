"""
Lobby Handler

This module handles the Socket.IO lobby requests: joining a board by pin,
leaving it, and resuming a membership after a reconnect.
"""

import logging

from flask import request

from src.core.errors import ValidationError
from src.services.error_response_factory import with_error_handling
from src.services.lobby_coordinator import JOIN_ERROR, LEAVE_ERROR, RESUME_ERROR
from .base_handler import BaseHandler

logger = logging.getLogger(__name__)


class LobbyHandler(BaseHandler):
    """Handler for joinRequest, leaveRequest and resumeRequest."""

    @with_error_handling
    def handle_join_request(self, data):
        """
        Handle a player joining a board.

        Expected data format:
        {
            'pin': '4821',
            'displayName': 'Ada'
        }
        """
        self.log_handler_start('handle_join_request', data)
        sid = request.sid  # type: ignore[attr-defined]

        try:
            pin, display_name = self.validate_join_data(data)
        except ValidationError as e:
            self.lobby_coordinator.send_error(sid, JOIN_ERROR, e)
            return

        result = self.lobby_coordinator.request_join(sid, pin, display_name)
        if result:
            self.log_handler_success(
                'handle_join_request',
                f'Player {display_name} ({result["player_id"]}) joined board {result["board_id"]}'
            )

    @with_error_handling
    def handle_leave_request(self, data):
        """
        Handle a player leaving its board.

        Expected data format:
        {
            'boardId': '...',
            'playerId': '...'
        }
        """
        self.log_handler_start('handle_leave_request', data)
        sid = request.sid  # type: ignore[attr-defined]

        try:
            board_id, player_id = self.validate_membership_data(data)
        except ValidationError as e:
            self.lobby_coordinator.send_error(sid, LEAVE_ERROR, e)
            return

        if self.lobby_coordinator.request_leave(sid, board_id, player_id):
            self.log_handler_success('handle_leave_request', f'Player {player_id} left board {board_id}')

    @with_error_handling
    def handle_resume_request(self, data):
        """Handle a reconnecting client reclaiming its player."""
        self.log_handler_start('handle_resume_request', data)
        sid = request.sid  # type: ignore[attr-defined]

        try:
            board_id, player_id = self.validate_membership_data(data)
        except ValidationError as e:
            self.lobby_coordinator.send_error(sid, RESUME_ERROR, e)
            return

        if self.lobby_coordinator.request_resume(sid, board_id, player_id):
            self.log_handler_success('handle_resume_request', f'Player {player_id} resumed on board {board_id}')
