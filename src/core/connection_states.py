"""
Connection State Enumeration

Defines the lobby states a live connection moves through.
"""

from enum import Enum


class ConnectionState(Enum):
    """Connection state enumeration."""
    ANONYMOUS = "anonymous"
    JOINING = "joining"
    JOINED = "joined"
    LEAVING = "leaving"
    DISCONNECTED = "disconnected"
