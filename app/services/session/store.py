import asyncio
import logging
import weakref
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from pydantic import ValidationError
from redis.asyncio import Redis

from app.core.config import get_settings
from app.models.session import ConversationSession
from app.services.session.lock import DEFAULT_LOCK_TTL_MS, session_lock
from app.services.session.redis_conn import get_redis

logger = logging.getLogger(__name__)


def _default_session(user_identifier: str) -> ConversationSession:
    return ConversationSession(user_identifier=user_identifier)


def _deserialize(user_identifier: str, raw: Optional[str]) -> ConversationSession:
    if not raw:
        return _default_session(user_identifier)
    try:
        return ConversationSession.model_validate_json(raw)
    except ValidationError as e:
        logger.warning(f"[SESSION] Registro corrupto para {user_identifier}, se reinicia: {e}")
        return _default_session(user_identifier)


class SessionStore(ABC):
    """
    Persistencia de sesiones de conversación.
    Responsabilidad única: cargar, guardar y serializar por usuario.
    """

    @abstractmethod
    async def load(self, user_identifier: str) -> ConversationSession:
        """Carga la sesión; si no existe devuelve una sesión idle nueva."""

    @abstractmethod
    async def save(self, session: ConversationSession) -> None:
        """Guarda la sesión completa de forma atómica."""

    @abstractmethod
    def lock(self, user_identifier: str):
        """Context manager asíncrono que serializa el acceso por usuario."""

    @asynccontextmanager
    async def session(self, user_identifier: str) -> AsyncIterator[ConversationSession]:
        """
        Bloquea, carga y entrega la sesión; la guarda al salir, también
        cuando el bloque termina con excepción.
        """
        async with self.lock(user_identifier):
            session = await self.load(user_identifier)
            try:
                yield session
            finally:
                await self.save(session)


class RedisSessionStore(SessionStore):
    """Sesiones como documentos JSON en Redis."""

    def __init__(self, redis: Redis, prefix: str = "session:", lock_ttl_ms: int = DEFAULT_LOCK_TTL_MS):
        self.redis = redis
        self.prefix = prefix
        self.lock_ttl_ms = lock_ttl_ms

    def _key(self, user_identifier: str) -> str:
        return f"{self.prefix}{user_identifier}"

    async def load(self, user_identifier: str) -> ConversationSession:
        raw = await self.redis.get(self._key(user_identifier))
        return _deserialize(user_identifier, raw)

    async def save(self, session: ConversationSession) -> None:
        await self.redis.set(self._key(session.user_identifier), session.model_dump_json())
        logger.debug(
            f"[SESSION] Guardada {session.user_identifier}: "
            f"{session.current_flow}/{session.current_step}"
        )

    def lock(self, user_identifier: str):
        return session_lock(self.redis, user_identifier, self.lock_ttl_ms)


class InMemorySessionStore(SessionStore):
    """
    Almacén en memoria para desarrollo local y pruebas.
    Serializa igual que Redis para que el límite del diccionario genérico sea el mismo.
    """

    def __init__(self):
        self._records: Dict[str, str] = {}
        # Un lock vive mientras alguien lo tiene o lo espera; después se libera
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    async def load(self, user_identifier: str) -> ConversationSession:
        return _deserialize(user_identifier, self._records.get(user_identifier))

    async def save(self, session: ConversationSession) -> None:
        self._records[session.user_identifier] = session.model_dump_json()

    def lock(self, user_identifier: str) -> asyncio.Lock:
        lock = self._locks.get(user_identifier)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_identifier] = lock
        return lock


def get_session_store() -> SessionStore:
    """Crea el almacén configurado en SESSION_BACKEND."""
    settings = get_settings()
    if settings.SESSION_BACKEND == "memory":
        logger.warning("[SESSION] Usando almacén en memoria, las sesiones no sobreviven reinicios")
        return InMemorySessionStore()

    return RedisSessionStore(get_redis(), settings.SESSION_PREFIX, settings.SESSION_LOCK_TTL_MS)
