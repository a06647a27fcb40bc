"""
Services package for Quizboard

Contains the lobby service classes, each with a single responsibility.
"""

from .concurrency_control_service import ConcurrencyControlService
from .membership_service import MembershipService
from .connection_registry import ConnectionRegistry
from .live_channel import LiveChannel
from .lobby_coordinator import LobbyCoordinator
from .inactivity_sweep_service import InactivitySweepService
from .admin_token_service import AdminTokenService
from .validation_service import ValidationService

__all__ = [
    'ConcurrencyControlService',
    'MembershipService',
    'ConnectionRegistry',
    'LiveChannel',
    'LobbyCoordinator',
    'InactivitySweepService',
    'AdminTokenService',
    'ValidationService'
]
