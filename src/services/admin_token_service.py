"""
Admin Token Service for Quizboard

Issues and verifies the bearer tokens that authorize administrative lobby
operations (removing inactive players). Tokens are HS256 JWTs carrying
``role: admin``.
"""

import hmac
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import jwt

from src.core.errors import ErrorCode, LobbyError

logger = logging.getLogger(__name__)

TOKEN_ISSUER = "quizboard"
ADMIN_ROLE = "admin"


class AdminTokenService:
    """Creates and validates admin bearer tokens."""

    def __init__(self, app_config=None):
        """
        Args:
            app_config: AppConfig providing admin credentials and jwt settings.
                When omitted, the globally loaded configuration is used.
        """
        if app_config is None:
            from config_factory import get_config
            app_config = get_config()
        self._config = app_config

    def check_credentials(self, username: str, password: str) -> bool:
        """Compare submitted admin credentials with the configured ones."""
        if not isinstance(username, str) or not isinstance(password, str):
            return False
        username_ok = hmac.compare_digest(username.encode(), self._config.admin_username.encode())
        password_ok = hmac.compare_digest(password.encode(), self._config.admin_password.encode())
        return username_ok and password_ok

    def issue_token(self, subject: str) -> str:
        """
        Create an admin token for ``subject``.

        Args:
            subject: Admin username the token is issued to

        Returns:
            Encoded JWT
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": subject,
            "role": ADMIN_ROLE,
            "iat": now,
            "exp": now + timedelta(minutes=self._config.admin_token_expiry_minutes),
            "iss": TOKEN_ISSUER
        }
        token = jwt.encode(payload, self._config.jwt_secret, algorithm="HS256")
        logger.info(f"Issued admin token for {subject}")
        return token

    def login(self, username: str, password: str) -> str:
        """
        Exchange admin credentials for a token.

        Raises:
            LobbyError: UNAUTHORIZED if the credentials don't match
        """
        if not self.check_credentials(username, password):
            logger.warning(f"Rejected admin login for {username!r}")
            raise LobbyError("Invalid admin credentials", code=ErrorCode.UNAUTHORIZED)
        return self.issue_token(username)

    def verify_token(self, token: Optional[str]) -> Dict:
        """
        Validate an admin token.

        Returns:
            Decoded claims

        Raises:
            LobbyError: UNAUTHORIZED if the token is missing, invalid, expired or not an admin token
        """
        if not token:
            raise LobbyError("Missing admin token", code=ErrorCode.UNAUTHORIZED)

        try:
            claims = jwt.decode(
                token,
                self._config.jwt_secret,
                algorithms=["HS256"],
                issuer=TOKEN_ISSUER
            )
        except jwt.ExpiredSignatureError:
            raise LobbyError("Admin token has expired", code=ErrorCode.UNAUTHORIZED)
        except jwt.InvalidTokenError as e:
            raise LobbyError(f"Invalid admin token: {e}", code=ErrorCode.UNAUTHORIZED)

        if claims.get("role") != ADMIN_ROLE:
            raise LobbyError("Token does not grant admin access", code=ErrorCode.UNAUTHORIZED)

        return claims

    @staticmethod
    def extract_bearer_token(authorization_header: Optional[str]) -> Optional[str]:
        """Pull the token out of an ``Authorization: Bearer <token>`` header."""
        if not authorization_header:
            return None
        scheme, _, token = authorization_header.partition(' ')
        if scheme.lower() != 'bearer' or not token.strip():
            return None
        return token.strip()
