import logging
from typing import Dict, Optional
from .base_client import BaseClient, NotFoundError

logger = logging.getLogger(__name__)

class UsersApi(BaseClient):
    """
    Cliente para usuarios registrados del marketplace.
    Responsabilidad única: consultar el perfil asociado a un teléfono.
    """

    async def get_user_by_phone(self, phone: str) -> Optional[Dict]:
        """
        Busca el usuario registrado con ese teléfono.

        Returns:
            Dict: Usuario ({"id", "name", "phone", "is_shop_owner", "shop_id"}) o None si no está registrado
        """
        try:
            user = await self._make_request("GET", f"users/phone/{phone}")
        except NotFoundError:
            logger.debug(f"[USERS] Teléfono sin usuario registrado")
            return None
        return user
