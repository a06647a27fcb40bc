"""
Store package for Quizboard

Contains the session store contract and its in-memory implementation.
"""

from .session_store import SessionStore, InMemorySessionStore

__all__ = [
    'SessionStore',
    'InMemorySessionStore'
]
