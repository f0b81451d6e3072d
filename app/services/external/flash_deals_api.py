import logging
from typing import Dict
from .base_client import BaseClient

logger = logging.getLogger(__name__)

class FlashDealsApi(BaseClient):
    """
    Cliente para ofertas relámpago.
    Responsabilidad única: crear y lanzar ofertas relámpago.
    """

    async def create_flash_deal(self, shop_id: int, deal_data: Dict) -> Dict:
        """
        Crea la oferta; si el horario es "now" el backend la lanza y notifica a los clientes.

        Returns:
            Dict: Oferta creada, incluye "id" y "notified_customers_count"
        """
        payload = {"shopId": shop_id, **deal_data}
        deal = await self._make_request("POST", "flash-deals", json=payload)
        logger.info(f"[FLASH_DEALS] Oferta relámpago {deal.get('id')} creada para tienda {shop_id}")
        return deal
