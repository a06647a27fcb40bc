"""
Lobby Settings Configuration Module

Provides centralized access to lobby-specific configuration values,
with fallback defaults when no application configuration has been loaded.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class LobbySettings:
    """Centralized lobby settings management."""

    def __init__(self, app_config=None):
        """
        Initialize lobby settings.

        Args:
            app_config: Application configuration instance from config_factory.
                When omitted, the globally loaded configuration is consulted on
                every access so overrides are picked up.
        """
        self._explicit_config = app_config

    @property
    def _config(self):
        if self._explicit_config is not None:
            return self._explicit_config
        try:
            from config_factory import get_config
            return get_config()
        except Exception as e:
            logger.debug(f"Configuration not loaded, using defaults: {e}")
            return None

    def _get(self, name: str, default):
        config = self._config
        if config is None:
            return default
        return getattr(config, name, default)

    @property
    def pin_length(self) -> int:
        """Number of digits in a board pin."""
        return self._get('pin_length', 4)

    @property
    def max_display_name_length(self) -> int:
        """Maximum characters in a player display name."""
        return self._get('max_display_name_length', 20)

    @property
    def max_players_per_board(self) -> int:
        """Maximum members a board accepts."""
        return self._get('max_players_per_board', 50)

    @property
    def serialize_board_mutations(self) -> bool:
        """Whether join/leave hold a per-board lock around read-modify-write."""
        return self._get('serialize_board_mutations', True)

    @property
    def store_retry_attempts(self) -> int:
        """How many times a store-unavailable failure is retried."""
        return self._get('store_retry_attempts', 1)

    @property
    def store_retry_delay_seconds(self) -> float:
        return self._get('store_retry_delay_seconds', 0.0)

    @property
    def inactivity_timeout_seconds(self) -> int:
        """Seconds a player may be absent before being removed as inactive."""
        return self._get('inactivity_timeout_seconds', 120)

    @property
    def inactivity_sweep_interval_seconds(self) -> int:
        return self._get('inactivity_sweep_interval_seconds', 10)

    @property
    def orphan_grace_seconds(self) -> int:
        """Age an unreferenced player must reach before the sweep deletes it."""
        return self._get('orphan_grace_seconds', 60)


# Global instance for easy access
_lobby_settings_instance: Optional[LobbySettings] = None


def get_lobby_settings(app_config=None) -> LobbySettings:
    """
    Get or create the global lobby settings instance.

    Args:
        app_config: Optional app config to pin the settings to

    Returns:
        LobbySettings instance
    """
    global _lobby_settings_instance

    if _lobby_settings_instance is None or app_config is not None:
        _lobby_settings_instance = LobbySettings(app_config)

    return _lobby_settings_instance


def reset_lobby_settings():
    """Reset the global lobby settings instance (mainly for testing)."""
    global _lobby_settings_instance
    _lobby_settings_instance = None
