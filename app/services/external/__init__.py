"""
Módulo de clientes externos para la API del marketplace.
Proporciona una interfaz unificada para los flujos de conversación.
"""

from typing import Dict, List, Optional

from .base_client import MarketplaceApiError, NotFoundError
from .users_api import UsersApi
from .agreements_api import AgreementsApi
from .offers_api import OffersApi
from .product_requests_api import ProductRequestsApi
from .flash_deals_api import FlashDealsApi

class MarketplaceApi:
    """
    Interfaz unificada para todos los clientes de la API del marketplace.
    Cada operación devuelve un valor o lanza MarketplaceApiError.
    """

    def __init__(self):
        self._users = UsersApi()
        self._agreements = AgreementsApi()
        self._offers = OffersApi()
        self._product_requests = ProductRequestsApi()
        self._flash_deals = FlashDealsApi()

    # ==================== USUARIOS ====================

    async def get_user_by_phone(self, phone: str) -> Optional[Dict]:
        return await self._users.get_user_by_phone(phone)

    # ==================== ACUERDOS ====================

    async def list_agreements(self, user_id: str) -> List[Dict]:
        return await self._agreements.list_agreements(user_id)

    async def count_pending_agreements(self, user_id: str) -> int:
        return await self._agreements.count_pending_agreements(user_id)

    async def get_agreement(self, agreement_id: int) -> Dict:
        return await self._agreements.get_agreement(agreement_id)

    async def create_agreement(self, user_id: str, agreement_data: Dict) -> Dict:
        return await self._agreements.create_agreement(user_id, agreement_data)

    async def mark_agreement_complete(self, agreement_id: int, user_id: str) -> Dict:
        return await self._agreements.mark_agreement_complete(agreement_id, user_id)

    async def cancel_agreement(self, agreement_id: int, user_id: str) -> Dict:
        return await self._agreements.cancel_agreement(agreement_id, user_id)

    # ==================== OFERTAS ====================

    async def list_shop_offers(self, shop_id: int) -> List[Dict]:
        return await self._offers.list_shop_offers(shop_id)

    async def get_offer(self, offer_id: int) -> Dict:
        return await self._offers.get_offer(offer_id)

    async def delete_offer(self, offer_id: int) -> None:
        await self._offers.delete_offer(offer_id)

    # ==================== SOLICITUDES DE PRODUCTO ====================

    async def list_requests_for_shop(self, shop_id: int, limit: int = 10) -> List[Dict]:
        return await self._product_requests.list_requests_for_shop(shop_id, limit)

    async def get_request(self, request_id: int) -> Dict:
        return await self._product_requests.get_request(request_id)

    async def has_responded(self, request_id: int, shop_id: int) -> bool:
        return await self._product_requests.has_responded(request_id, shop_id)

    async def create_response(self, request_id: int, shop_id: int, response_data: Dict) -> Dict:
        return await self._product_requests.create_response(request_id, shop_id, response_data)

    # ==================== OFERTAS RELÁMPAGO ====================

    async def create_flash_deal(self, shop_id: int, deal_data: Dict) -> Dict:
        return await self._flash_deals.create_flash_deal(shop_id, deal_data)

    # ==================== GESTIÓN DE RECURSOS ====================

    async def close(self):
        """Cierra todos los clientes HTTP."""
        await self._users.close()
        await self._agreements.close()
        await self._offers.close()
        await self._product_requests.close()
        await self._flash_deals.close()

__all__ = ["MarketplaceApi", "MarketplaceApiError", "NotFoundError"]
