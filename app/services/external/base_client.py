import httpx
import logging
from typing import Any, Optional
from app.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

class MarketplaceApiError(Exception):
    """Error al llamar a la API del marketplace."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

class NotFoundError(MarketplaceApiError):
    """El recurso solicitado no existe (404)."""

class BaseClient:
    """
    Cliente HTTP base para comunicación con la API del marketplace.
    Responsabilidad única: configuración HTTP y manejo de errores.
    """

    def __init__(self):
        self.base_url = settings.MARKETPLACE_API_URL.rstrip("/")

        self.headers = {
            "Content-Type": "application/json",
            "x-api-token": settings.MARKETPLACE_API_TOKEN
        }

        # Cliente HTTP reutilizable con configuración optimizada
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(10.0, connect=5.0),
            headers=self.headers,
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10)
        )

    async def _make_request(self, method: str, url: str, **kwargs) -> Any:
        """
        Método centralizado para hacer requests con manejo de errores.

        Args:
            method: Método HTTP (GET, POST, PATCH, DELETE)
            url: URL relativa o absoluta
            **kwargs: Argumentos adicionales para httpx

        Returns:
            Any: Campo "data" de la respuesta JSON (None si no hay cuerpo)

        Raises:
            NotFoundError: El servidor respondió 404
            MarketplaceApiError: Cualquier otro error HTTP, timeout o fallo de conexión
        """
        full_url = url if url.startswith('http') else f"{self.base_url}/{url.lstrip('/')}"
        try:
            logger.debug(f"[API] {method} {full_url}")
            response = await self.client.request(method, full_url, **kwargs)
            logger.debug(f"[API] {method} {full_url} -> {response.status_code}")
        except httpx.TimeoutException as e:
            logger.error(f"[API] Timeout en {method} {url}")
            raise MarketplaceApiError("Timeout al comunicarse con la API") from e
        except httpx.RequestError as e:
            logger.error(f"[API] Error de conexión en {method} {url}: {e}")
            raise MarketplaceApiError(f"Error de conexión: {str(e)}") from e

        if response.status_code == 404:
            raise NotFoundError(f"No encontrado: {url}", status_code=404)

        if response.status_code >= 400:
            logger.error(f"[API] Error {response.status_code}: {response.text}")
            raise MarketplaceApiError(
                f"La API respondió {response.status_code}", status_code=response.status_code
            )

        if not response.content:
            return None
        return response.json().get("data")

    async def close(self):
        """Cierra el cliente HTTP."""
        try:
            await self.client.aclose()
            logger.debug("[API] Cliente HTTP cerrado")
        except httpx.HTTPError as e:
            logger.error(f"[API] Error cerrando cliente: {e}")
