"""
Módulo de sesiones de conversación: almacén, lock por usuario y mutaciones.
"""

from .lock import SessionLockError, session_lock
from .session_manager import SessionManager
from .store import InMemorySessionStore, RedisSessionStore, SessionStore, get_session_store

__all__ = [
    "SessionStore",
    "RedisSessionStore",
    "InMemorySessionStore",
    "get_session_store",
    "SessionLockError",
    "session_lock",
    "SessionManager",
]
