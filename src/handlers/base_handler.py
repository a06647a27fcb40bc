"""
Base Handler Classes

This module provides the base class for Socket.IO handlers with common patterns
for service access, payload validation and logging.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from flask import request

from container import get_container

logger = logging.getLogger(__name__)


class BaseHandler:
    """
    Base class for all Socket.IO handlers.

    Services are resolved from the global container on every access, so a
    handler registered at startup follows the container across test resets.
    """

    @property
    def _container(self):
        return get_container()

    @property
    def lobby_coordinator(self):
        """Get the lobby coordinator service."""
        return self._container.get('LobbyCoordinator')

    @property
    def validation_service(self):
        """Get the validation service."""
        return self._container.get('ValidationService')

    @property
    def error_response_factory(self):
        return self._container.get('ErrorResponseFactory')

    def validate_data_dict(self, data: Any, required_fields: Optional[list] = None) -> Dict[str, Any]:
        """
        Validate that data is a dictionary and contains required fields.

        Raises:
            ValidationError: If validation fails
        """
        return self.validation_service.validate_request_data(data, required_fields)

    def validate_join_data(self, data: Any) -> Tuple[str, str]:
        """
        Validate joinRequest data and extract the pin and display name.

        Returns:
            Tuple of (pin, display_name)
        """
        validated_data = self.validate_data_dict(data, ['pin', 'displayName'])
        pin = self.validation_service.validate_pin(validated_data['pin'])
        display_name = self.validation_service.validate_display_name(validated_data['displayName'])
        return pin, display_name

    def validate_membership_data(self, data: Any) -> Tuple[str, str]:
        """
        Validate leaveRequest/resumeRequest data.

        Returns:
            Tuple of (board_id, player_id)
        """
        validated_data = self.validate_data_dict(data, ['boardId', 'playerId'])
        board_id = self.validation_service.validate_identifier(validated_data['boardId'], 'boardId')
        player_id = self.validation_service.validate_identifier(validated_data['playerId'], 'playerId')
        return board_id, player_id

    def log_handler_start(self, handler_name: str, data: Any = None) -> None:
        """Log the start of handler execution."""
        logger.info(f'{handler_name} called by client: {request.sid}')  # type: ignore[attr-defined]
        if data:
            logger.debug(f'{handler_name} data: {data}')

    def log_handler_success(self, handler_name: str, message: Optional[str] = None) -> None:
        """Log successful handler completion."""
        log_msg = f'{handler_name} completed successfully for client: {request.sid}'  # type: ignore[attr-defined]
        if message:
            log_msg += f' - {message}'
        logger.info(log_msg)
