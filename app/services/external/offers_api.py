import logging
from typing import Dict, List
from .base_client import BaseClient

logger = logging.getLogger(__name__)

class OffersApi(BaseClient):
    """
    Cliente para las ofertas publicadas por tiendas.
    Responsabilidad única: consultar y eliminar ofertas.
    """

    async def list_shop_offers(self, shop_id: int) -> List[Dict]:
        """Ofertas activas de la tienda."""
        data = await self._make_request("GET", f"shops/{shop_id}/offers", params={"active": "true"})
        return data or []

    async def get_offer(self, offer_id: int) -> Dict:
        return await self._make_request("GET", f"offers/{offer_id}")

    async def delete_offer(self, offer_id: int) -> None:
        await self._make_request("DELETE", f"offers/{offer_id}")
        logger.info(f"[OFFERS] Oferta {offer_id} eliminada")
