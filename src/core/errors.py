"""
Core error definitions for Quizboard

Provides error codes and the lobby exception hierarchy. Nothing in here
depends on other services.
"""

from enum import Enum
from typing import Dict, Optional


class ErrorCode(Enum):
    """Standardized error codes for the application."""

    # Request data errors
    INVALID_DATA = "INVALID_DATA"
    MISSING_DATA = "MISSING_DATA"
    MISSING_PIN = "MISSING_PIN"
    MISSING_DISPLAY_NAME = "MISSING_DISPLAY_NAME"
    DISPLAY_NAME_TOO_LONG = "DISPLAY_NAME_TOO_LONG"

    # Membership errors
    INVALID_PIN = "INVALID_PIN"
    NAME_TAKEN = "NAME_TAKEN"
    BOARD_NOT_FOUND = "BOARD_NOT_FOUND"
    PLAYER_NOT_IN_BOARD = "PLAYER_NOT_IN_BOARD"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    BOARD_FULL = "BOARD_FULL"
    DUPLICATE_PIN = "DUPLICATE_PIN"

    # Connection state errors
    ALREADY_JOINED = "ALREADY_JOINED"
    NOT_JOINED = "NOT_JOINED"
    PLAYER_ALREADY_CONNECTED = "PLAYER_ALREADY_CONNECTED"

    # Authorization errors
    UNAUTHORIZED = "UNAUTHORIZED"

    # System errors
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Wire-level reason strings reported to the requesting connection
_REASONS = {
    ErrorCode.INVALID_PIN: "InvalidPin",
    ErrorCode.NAME_TAKEN: "NameTaken",
    ErrorCode.BOARD_NOT_FOUND: "BoardNotFound",
    ErrorCode.PLAYER_NOT_IN_BOARD: "PlayerNotInBoard",
    ErrorCode.PLAYER_NOT_FOUND: "PlayerNotFound",
    ErrorCode.BOARD_FULL: "BoardFull",
    ErrorCode.DUPLICATE_PIN: "DuplicatePin",
    ErrorCode.ALREADY_JOINED: "AlreadyJoined",
    ErrorCode.NOT_JOINED: "NotJoined",
    ErrorCode.PLAYER_ALREADY_CONNECTED: "PlayerAlreadyConnected",
    ErrorCode.UNAUTHORIZED: "Unauthorized",
    ErrorCode.STORE_UNAVAILABLE: "StoreUnavailable",
    ErrorCode.INTERNAL_ERROR: "InternalError",
}


def reason_for(code: ErrorCode) -> str:
    """Map an error code to the reason string used in error events."""
    return _REASONS.get(code, "InvalidData")


class LobbyError(Exception):
    """Base exception for every failure reported back to a requester."""

    code = ErrorCode.INTERNAL_ERROR
    retryable = False

    def __init__(self, message: str, details: Optional[Dict] = None, code: Optional[ErrorCode] = None):
        if code is not None:
            self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    @property
    def reason(self) -> str:
        return reason_for(self.code)


class ValidationError(LobbyError):
    """Custom exception for validation errors."""

    code = ErrorCode.INVALID_DATA

    def __init__(self, code: ErrorCode, message: str, details: Optional[Dict] = None):
        super().__init__(message, details, code=code)


class InvalidPinError(LobbyError):
    """No board exists for the submitted pin."""
    code = ErrorCode.INVALID_PIN


class NameTakenError(LobbyError):
    """The display name is already used by a member of the board."""
    code = ErrorCode.NAME_TAKEN


class BoardNotFoundError(LobbyError):
    code = ErrorCode.BOARD_NOT_FOUND


class PlayerNotInBoardError(LobbyError):
    code = ErrorCode.PLAYER_NOT_IN_BOARD


class PlayerNotFoundError(LobbyError):
    code = ErrorCode.PLAYER_NOT_FOUND


class BoardFullError(LobbyError):
    code = ErrorCode.BOARD_FULL


class DuplicatePinError(LobbyError):
    """A board with the same pin is already active."""
    code = ErrorCode.DUPLICATE_PIN


class StoreUnavailableError(LobbyError):
    """Transient infrastructure failure; the only retryable error."""
    code = ErrorCode.STORE_UNAVAILABLE
    retryable = True
