"""
Pytest configuration and shared fakes for the conversation engine tests
"""

import os

# Set test environment variables before any app module reads settings
os.environ.setdefault("SESSION_BACKEND", "memory")
os.environ.setdefault("META_VERIFY_TOKEN", "test-verify-token")
os.environ.setdefault("LOG_LEVEL", "INFO")

import pytest

from app.models.event import EventKind, IncomingEvent
from app.models.session import ConversationSession
from app.services.conversation import ConversationManager
from app.services.external import MarketplaceApiError, NotFoundError
from app.services.session import InMemorySessionStore, SessionManager

USER_PHONE = "573001112233"


class FakeMessenger:
    """Records every outgoing message instead of calling the Cloud API"""

    def __init__(self):
        self.sent = []

    async def send_text(self, to, text, reply_to=None):
        self.sent.append({"type": "text", "to": to, "text": text})

    async def send_buttons(self, to, body, buttons, header=None, footer=None):
        self.sent.append({"type": "buttons", "to": to, "text": body, "buttons": [b["id"] for b in buttons]})

    async def send_list(self, to, body, button_text, sections, header=None, footer=None):
        rows = [row["id"] for section in sections for row in section["rows"]]
        self.sent.append({"type": "list", "to": to, "text": body, "rows": rows})

    async def send_image(self, to, image, caption=None):
        self.sent.append({"type": "image", "to": to, "image": image, "text": caption or ""})

    async def send_document(self, to, document, filename=None, caption=None):
        self.sent.append({"type": "document", "to": to, "document": document, "text": caption or ""})

    async def send_location(self, to, latitude, longitude, name=None, address=None):
        self.sent.append({"type": "location", "to": to, "text": name or ""})

    async def request_location(self, to, body):
        self.sent.append({"type": "location_request", "to": to, "text": body})

    @property
    def last(self):
        return self.sent[-1] if self.sent else None

    def of_type(self, message_type):
        return [m for m in self.sent if m["type"] == message_type]

    def clear(self):
        self.sent.clear()


class FakeMarketplaceApi:
    """
    In-memory marketplace backend.

    Names added to `failing` raise MarketplaceApiError on their next calls.
    """

    def __init__(self):
        self.users = {
            USER_PHONE: {"id": 7, "name": "Ana", "phone": USER_PHONE, "is_shop_owner": True, "shop_id": 3},
        }
        self.agreements = {
            42: {
                "id": 42, "agreement_number": "AGR-42", "amount": 50000, "status": "confirmed",
                "direction": "giving", "other_party_name": "Luis", "creator_id": 7, "due_date": "2026-11-01",
            },
            43: {
                "id": 43, "agreement_number": "AGR-43", "amount": 12000, "status": "pending",
                "direction": "receiving", "other_party_name": "Marta", "creator_id": 7, "due_date": None,
            },
        }
        self.offers = {
            11: {"id": 11, "title": "Combo desayuno", "discount_percent": 20, "views": 130, "claims": 12, "expires_at": "2026-10-30"},
        }
        self.requests = {
            15: {"id": 15, "description": "Cargador USB-C 65W", "status": "open"},
            16: {"id": 16, "description": "Funda para Moto G", "status": "closed"},
        }
        self.responded = set()
        self.created_agreements = []
        self.created_responses = []
        self.created_deals = []
        self.deleted_offers = []
        self.completed_agreements = []
        self.cancelled_agreements = []
        self.failing = set()

    def _check(self, name):
        if name in self.failing:
            raise MarketplaceApiError(f"{name} no disponible", status_code=503)

    async def get_user_by_phone(self, phone):
        self._check("get_user_by_phone")
        return self.users.get(phone)

    async def list_agreements(self, user_id):
        self._check("list_agreements")
        return list(self.agreements.values())

    async def count_pending_agreements(self, user_id):
        self._check("count_pending_agreements")
        return sum(1 for a in self.agreements.values() if a["status"] == "pending")

    async def get_agreement(self, agreement_id):
        self._check("get_agreement")
        if agreement_id not in self.agreements:
            raise NotFoundError("Acuerdo no encontrado", status_code=404)
        return self.agreements[agreement_id]

    async def create_agreement(self, user_id, agreement_data):
        self._check("create_agreement")
        agreement = {"id": 100 + len(self.created_agreements), "agreement_number": "AGR-100", **agreement_data}
        self.created_agreements.append(agreement)
        return agreement

    async def mark_agreement_complete(self, agreement_id, user_id):
        self._check("mark_agreement_complete")
        self.completed_agreements.append(agreement_id)
        return {**self.agreements[agreement_id], "status": "completed"}

    async def cancel_agreement(self, agreement_id, user_id):
        self._check("cancel_agreement")
        self.cancelled_agreements.append(agreement_id)
        return {**self.agreements[agreement_id], "status": "cancelled"}

    async def list_shop_offers(self, shop_id):
        self._check("list_shop_offers")
        return list(self.offers.values())

    async def get_offer(self, offer_id):
        self._check("get_offer")
        if offer_id not in self.offers:
            raise NotFoundError("Oferta no encontrada", status_code=404)
        return self.offers[offer_id]

    async def delete_offer(self, offer_id):
        self._check("delete_offer")
        if offer_id not in self.offers:
            raise NotFoundError("Oferta no encontrada", status_code=404)
        self.deleted_offers.append(offer_id)

    async def list_requests_for_shop(self, shop_id, limit=10):
        self._check("list_requests_for_shop")
        return [r for r in self.requests.values() if r["status"] == "open"][:limit]

    async def get_request(self, request_id):
        self._check("get_request")
        if request_id not in self.requests:
            raise NotFoundError("Solicitud no encontrada", status_code=404)
        return self.requests[request_id]

    async def has_responded(self, request_id, shop_id):
        self._check("has_responded")
        return request_id in self.responded

    async def create_response(self, request_id, shop_id, response_data):
        self._check("create_response")
        response = {"id": len(self.created_responses) + 1, "request_id": request_id, **response_data}
        self.created_responses.append(response)
        self.responded.add(request_id)
        return response

    async def create_flash_deal(self, shop_id, deal_data):
        self._check("create_flash_deal")
        deal = {"id": 500 + len(self.created_deals), **deal_data}
        self.created_deals.append(deal)
        return deal

    async def close(self):
        pass


# ==================== Event builders ====================

def text_event(body, sender=USER_PHONE):
    return IncomingEvent(sender_identifier=sender, kind=EventKind.TEXT, payload={"body": body})


def button_event(button_id, title="", sender=USER_PHONE):
    return IncomingEvent(sender_identifier=sender, kind=EventKind.BUTTON_REPLY, payload={"id": button_id, "title": title})


def list_event(row_id, title="", sender=USER_PHONE):
    return IncomingEvent(sender_identifier=sender, kind=EventKind.LIST_REPLY, payload={"id": row_id, "title": title})


def image_event(media_id="media-1", mime_type="image/jpeg", sender=USER_PHONE):
    return IncomingEvent(sender_identifier=sender, kind=EventKind.IMAGE, payload={"id": media_id, "mime_type": mime_type})


def unrecognized_event(sender=USER_PHONE):
    return IncomingEvent(sender_identifier=sender, kind=EventKind.UNRECOGNIZED, payload={"type": "sticker"})


# ==================== Fixtures ====================

@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def api():
    return FakeMarketplaceApi()


@pytest.fixture
def sessions():
    return SessionManager(timeout_minutes=30)


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def manager(store, messenger, api, sessions):
    return ConversationManager(store=store, messenger=messenger, api=api, sessions=sessions)


@pytest.fixture
def router(manager):
    return manager.flow_router


@pytest.fixture
def make_session():
    def _make(flow=None, step=None, temp_data=None, user_identifier=USER_PHONE):
        return ConversationSession(
            user_identifier=user_identifier,
            current_flow=flow,
            current_step=step,
            temp_data=temp_data or {},
        )
    return _make
