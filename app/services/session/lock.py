import asyncio
import logging
import uuid
from contextlib import asynccontextmanager

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

LOCK_PREFIX = "lock:session:"
RETRY_ATTEMPTS = 5
RETRY_DELAY_SECONDS = 0.1

# Mayor que el peor caso de un evento: varias llamadas HTTP de hasta 10 s cada una
DEFAULT_LOCK_TTL_MS = 60_000

# Libera solo si el token sigue siendo nuestro
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class SessionLockError(RuntimeError):
    """No se pudo adquirir el lock de la sesión."""


@asynccontextmanager
async def session_lock(redis: Redis, user_identifier: str, ttl_ms: int = DEFAULT_LOCK_TTL_MS):
    """
    Lock distribuido: un solo escritor por sesión de usuario.
    """
    key = f"{LOCK_PREFIX}{user_identifier}"
    token = uuid.uuid4().hex
    acquired = await redis.set(key, token, px=ttl_ms, nx=True)

    if not acquired:
        for _ in range(RETRY_ATTEMPTS):
            await asyncio.sleep(RETRY_DELAY_SECONDS)
            if await redis.set(key, token, px=ttl_ms, nx=True):
                acquired = True
                break

        if not acquired:
            raise SessionLockError(f"Could not acquire lock for session {user_identifier}")

    try:
        yield
    finally:
        try:
            await redis.eval(RELEASE_SCRIPT, 1, key, token)
        except RedisError as e:
            # El TTL termina liberando la llave
            logger.warning(f"[SESSION] No se pudo liberar el lock {key}: {e}")
