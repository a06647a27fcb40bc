"""
Validation Service for Quizboard

Provides input validation and sanitization for lobby requests, separated
from error response handling.
"""

import logging
import re
from typing import Any, Dict, Optional

from src.config.lobby_settings import LobbySettings, get_lobby_settings
from src.core.errors import ErrorCode, ValidationError

logger = logging.getLogger(__name__)


class ValidationService:
    """Service responsible for input validation and sanitization."""

    MAX_IDENTIFIER_LENGTH = 64
    MAX_SCORE = 10 ** 9

    # Identifiers issued by the store: letters, digits, hyphens, underscores
    IDENTIFIER_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')
    PIN_PATTERN = re.compile(r'^[0-9]+$')
    CONTROL_CHARS = re.compile(r'[\x00-\x1F\x7F]')

    # Specific codes for commonly missing fields
    MISSING_FIELD_CODES = {
        'pin': (ErrorCode.MISSING_PIN, "Pin is required"),
        'displayName': (ErrorCode.MISSING_DISPLAY_NAME, "Display name is required"),
    }

    def __init__(self, settings: Optional[LobbySettings] = None):
        """Initialize ValidationService with lobby settings"""
        self.lobby_settings = settings or get_lobby_settings()

    def validate_request_data(self, data: Any, required_fields: Optional[list] = None) -> Dict:
        """
        Validate Socket.IO / JSON request data.

        Args:
            data: Raw event or request payload
            required_fields: List of required field names

        Returns:
            Validated data dictionary

        Raises:
            ValidationError: If data is invalid
        """
        if not isinstance(data, dict):
            raise ValidationError(
                ErrorCode.INVALID_DATA,
                "Invalid data format - expected dictionary"
            )

        if required_fields:
            missing_fields = [field for field in required_fields if field not in data]
            if len(missing_fields) == 1 and missing_fields[0] in self.MISSING_FIELD_CODES:
                code, message = self.MISSING_FIELD_CODES[missing_fields[0]]
                raise ValidationError(code, message)
            if missing_fields:
                raise ValidationError(
                    ErrorCode.MISSING_DATA,
                    f"Missing required fields: {', '.join(missing_fields)}",
                    {"missing_fields": missing_fields, "required_fields": required_fields}
                )

        return data

    def validate_pin(self, pin: Any) -> str:
        """
        Validate a board pin.

        Numeric pins sent as JSON numbers are accepted and converted.

        Raises:
            ValidationError: MISSING_PIN when empty, INVALID_PIN when malformed
        """
        if isinstance(pin, int) and not isinstance(pin, bool):
            pin = str(pin).zfill(self.lobby_settings.pin_length)

        if not pin or not isinstance(pin, str):
            raise ValidationError(
                ErrorCode.MISSING_PIN,
                "Pin is required"
            )

        pin = pin.strip()
        expected_length = self.lobby_settings.pin_length
        if len(pin) != expected_length or not self.PIN_PATTERN.match(pin):
            raise ValidationError(
                ErrorCode.INVALID_PIN,
                f"Pin must be {expected_length} digits",
                {"pin_length": expected_length}
            )

        return pin

    def validate_display_name(self, display_name: Any) -> str:
        """
        Validate and sanitize a display name.

        Surrounding whitespace and control characters are removed; case is
        preserved because uniqueness is a case-sensitive exact match.

        Raises:
            ValidationError: If the name is missing or too long
        """
        if not display_name or not isinstance(display_name, str):
            raise ValidationError(
                ErrorCode.MISSING_DISPLAY_NAME,
                "Display name is required"
            )

        display_name = self.CONTROL_CHARS.sub('', display_name).strip()

        if not display_name:
            raise ValidationError(
                ErrorCode.MISSING_DISPLAY_NAME,
                "Display name cannot be empty"
            )

        max_length = self.lobby_settings.max_display_name_length
        if len(display_name) > max_length:
            raise ValidationError(
                ErrorCode.DISPLAY_NAME_TOO_LONG,
                f"Display name must be {max_length} characters or less",
                {"max_length": max_length, "actual_length": len(display_name)}
            )

        return display_name

    def validate_identifier(self, value: Any, field_name: str) -> str:
        """Validate a board or player identifier."""
        if not value or not isinstance(value, str):
            raise ValidationError(
                ErrorCode.MISSING_DATA,
                f"{field_name} is required"
            )

        value = value.strip()
        if len(value) > self.MAX_IDENTIFIER_LENGTH or not self.IDENTIFIER_PATTERN.match(value):
            raise ValidationError(
                ErrorCode.INVALID_DATA,
                f"{field_name} is not a valid identifier"
            )

        return value

    def validate_score(self, score: Any) -> int:
        """Validate a player score update."""
        if isinstance(score, bool) or not isinstance(score, int):
            raise ValidationError(
                ErrorCode.INVALID_DATA,
                "Score must be an integer"
            )

        if abs(score) > self.MAX_SCORE:
            raise ValidationError(
                ErrorCode.INVALID_DATA,
                f"Score must be between {-self.MAX_SCORE} and {self.MAX_SCORE}"
            )

        return score
