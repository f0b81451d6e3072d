import logging
from typing import Dict, List
from .base_client import BaseClient

logger = logging.getLogger(__name__)

class AgreementsApi(BaseClient):
    """
    Cliente para acuerdos digitales entre usuarios.
    Responsabilidad única: operaciones CRUD de acuerdos.
    """

    async def list_agreements(self, user_id: str) -> List[Dict]:
        """Acuerdos donde participa el usuario, más recientes primero."""
        data = await self._make_request("GET", "agreements", params={"userId": user_id})
        return data or []

    async def count_pending_agreements(self, user_id: str) -> int:
        """Acuerdos que esperan la confirmación del usuario."""
        data = await self._make_request("GET", "agreements/pending/count", params={"userId": user_id})
        return int((data or {}).get("count", 0))

    async def get_agreement(self, agreement_id: int) -> Dict:
        return await self._make_request("GET", f"agreements/{agreement_id}")

    async def create_agreement(self, user_id: str, agreement_data: Dict) -> Dict:
        """
        Crea un acuerdo y dispara la solicitud de confirmación a la contraparte.

        Returns:
            Dict: Acuerdo creado, incluye "id" y "agreement_number"
        """
        payload = {"creatorId": user_id, **agreement_data}
        agreement = await self._make_request("POST", "agreements", json=payload)
        logger.info(f"[AGREEMENTS] Acuerdo creado: {agreement.get('agreement_number')}")
        return agreement

    async def mark_agreement_complete(self, agreement_id: int, user_id: str) -> Dict:
        return await self._make_request(
            "PATCH", f"agreements/{agreement_id}/complete", json={"userId": user_id}
        )

    async def cancel_agreement(self, agreement_id: int, user_id: str) -> Dict:
        return await self._make_request(
            "PATCH", f"agreements/{agreement_id}/cancel", json={"userId": user_id}
        )
