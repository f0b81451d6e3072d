import logging
from typing import Dict, List
from .base_client import BaseClient, NotFoundError

logger = logging.getLogger(__name__)

class ProductRequestsApi(BaseClient):
    """
    Cliente para solicitudes de producto de clientes y respuestas de tiendas.
    """

    async def list_requests_for_shop(self, shop_id: int, limit: int = 10) -> List[Dict]:
        """Solicitudes abiertas cercanas a la tienda."""
        data = await self._make_request(
            "GET", f"shops/{shop_id}/product-requests", params={"limit": limit}
        )
        return data or []

    async def get_request(self, request_id: int) -> Dict:
        return await self._make_request("GET", f"product-requests/{request_id}")

    async def has_responded(self, request_id: int, shop_id: int) -> bool:
        try:
            await self._make_request("GET", f"product-requests/{request_id}/responses/shop/{shop_id}")
        except NotFoundError:
            return False
        return True

    async def create_response(self, request_id: int, shop_id: int, response_data: Dict) -> Dict:
        payload = {"shopId": shop_id, **response_data}
        response = await self._make_request(
            "POST", f"product-requests/{request_id}/responses", json=payload
        )
        logger.info(f"[PRODUCT_REQUESTS] Respuesta registrada para solicitud {request_id}")
        return response
