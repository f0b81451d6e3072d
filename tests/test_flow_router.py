"""
Tests for FlowRouter

Tests cover:
- Acceptance scenarios (idle greeting, list selection, validation failure,
  button transition, collaborator failure with retry)
- Step invariant after any event
- Global navigation (menu, cancel, help, quick actions, notification buttons)
- go_to_flow / start_flow semantics and the shop-only gate
- Configuration and protocol faults
- Session restore when a flow raises
"""

import pytest

from app.services.conversation.flow_types import FLOW_DESCRIPTORS, FlowType
from app.services.conversation.flows import FLOW_MAPPING
from app.services.conversation.flows.base_flow import InvalidStepError
from conftest import (
    USER_PHONE,
    button_event,
    image_event,
    list_event,
    text_event,
    unrecognized_event,
)

ALL_FLOW_STEPS = [
    (name, step)
    for name, descriptor in FLOW_DESCRIPTORS.items()
    for step in sorted(descriptor.step_set)
]


def snapshot(session):
    return session.current_flow, session.current_step, dict(session.temp_data)


class TestScenarios:
    """Acceptance scenarios"""

    @pytest.mark.asyncio
    async def test_idle_greeting_opens_main_menu(self, router, messenger, make_session):
        """Test idle session + 'hi' lands on the main menu awaiting a selection"""
        session = make_session()

        await router.route(text_event("hi"), session)

        assert session.current_flow == "main_menu"
        assert session.current_step == "awaiting_selection"
        assert messenger.last["type"] == "list"

    @pytest.mark.asyncio
    async def test_agreement_selection_opens_detail(self, router, messenger, make_session):
        """Test list reply 'agreement_42' moves to view_detail and stores the id"""
        session = make_session("agreement_list", "my_list")

        await router.route(list_event("agreement_42"), session)

        assert session.current_flow == "agreement_list"
        assert session.current_step == "view_detail"
        assert session.temp_data["view_agreement_id"] == 42
        assert "mark_complete" in messenger.last["buttons"]

    @pytest.mark.asyncio
    async def test_invalid_discount_keeps_session_and_reprompts(self, router, messenger, make_session):
        """Test non-numeric discount leaves the session untouched and re-asks the same step"""
        session = make_session("flash_deal_create", "ask_discount", {"title": "Combo almuerzo", "image_media_id": "m1"})
        before = snapshot(session)

        await router.route(text_event("abc"), session)

        assert snapshot(session) == before
        assert messenger.sent[0]["type"] == "text"
        assert "descuento" in messenger.sent[0]["text"].lower()
        assert "flash_back" in messenger.last["buttons"]

    @pytest.mark.asyncio
    async def test_delete_button_moves_to_delete_confirm(self, router, make_session):
        """Test 'delete' in manage_offer asks for confirmation"""
        session = make_session("offers_manage", "manage_offer", {"manage_offer_id": 11})

        await router.route(button_event("delete"), session)

        assert session.current_flow == "offers_manage"
        assert session.current_step == "delete_confirm"
        assert session.temp_data["manage_offer_id"] == 11

    @pytest.mark.asyncio
    async def test_create_failure_keeps_step_then_retry_advances(self, router, messenger, api, make_session):
        """Test a failing create keeps the review step, and retrying after recovery completes it"""
        draft = {
            "direction": "giving", "amount": 50000, "other_party_name": "Luis",
            "other_party_phone": "573009998877", "purpose": "loan", "due_date_selection": "none",
        }
        session = make_session("agreement_create", "review", draft)
        api.failing.add("create_agreement")

        await router.route(button_event("confirm"), session)

        assert session.current_step == "review"
        assert session.temp_data == draft
        assert messenger.last["buttons"] == ["confirm", "menu"]
        assert api.created_agreements == []

        api.failing.clear()
        await router.route(button_event("confirm"), session)

        assert session.current_step == "done"
        assert len(api.created_agreements) == 1
        assert session.temp_data["created_agreement_id"] == 100


class TestStepInvariant:
    """After any event the step belongs to the current flow"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("flow,step", ALL_FLOW_STEPS)
    @pytest.mark.parametrize("event", [
        text_event("xyz"),
        button_event("unknown_button"),
        list_event("unknown_row"),
        image_event(),
        unrecognized_event(),
    ], ids=["text", "button", "list", "image", "unrecognized"])
    async def test_step_always_in_flow_step_set(self, router, make_session, flow, step, event):
        """Test routing arbitrary events never leaves an undeclared step"""
        session = make_session(flow, step)

        await router.route(event, session)

        descriptor = FLOW_DESCRIPTORS[session.current_flow]
        assert session.current_step in descriptor.step_set


class TestGlobalNavigation:
    """Global keywords are handled before any step logic"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("flow,step", ALL_FLOW_STEPS)
    async def test_menu_keyword_returns_to_main_menu(self, router, make_session, flow, step):
        """Test 'menu' from any (flow, step) resets to the main menu"""
        session = make_session(flow, step, {"leftover": 1})

        await router.route(text_event("menu"), session)

        assert session.current_flow == "main_menu"
        assert session.current_step == "awaiting_selection"
        assert session.temp_data == {}

    @pytest.mark.asyncio
    async def test_menu_button_returns_to_main_menu(self, router, make_session):
        """Test the 🏠 Menú button id works like the keyword"""
        session = make_session("flash_deal_create", "preview", {"title": "Combo"})

        await router.route(button_event("menu"), session)

        assert (session.current_flow, session.current_step) == ("main_menu", "awaiting_selection")

    @pytest.mark.asyncio
    async def test_cancel_inside_flow(self, router, messenger, make_session):
        """Test 'cancelar' abandons the flow with a notice"""
        session = make_session("agreement_create", "ask_amount", {"direction": "giving"})

        await router.route(text_event("Cancelar"), session)

        assert (session.current_flow, session.current_step) == ("main_menu", "awaiting_selection")
        assert session.temp_data == {}
        assert any("cancelada" in m["text"] for m in messenger.of_type("text"))

    @pytest.mark.asyncio
    async def test_help_does_not_change_session(self, router, messenger, make_session):
        """Test 'ayuda' answers with help and keeps the current step"""
        session = make_session("agreement_create", "ask_name", {"direction": "giving", "amount": 1000})
        before = snapshot(session)

        await router.route(text_event("ayuda"), session)

        assert snapshot(session) == before
        assert messenger.last["buttons"] == ["menu"]

    @pytest.mark.asyncio
    async def test_quick_action_only_when_idle(self, router, make_session):
        """Test 'ofertas' opens offer management from idle"""
        session = make_session()

        await router.route(text_event("ofertas"), session)

        assert (session.current_flow, session.current_step) == ("offers_manage", "show_my_offers")

    @pytest.mark.asyncio
    async def test_quick_action_ignored_inside_flow(self, router, make_session):
        """Test quick-action words are plain input while a flow is active"""
        session = make_session("agreement_create", "ask_name", {"direction": "giving", "amount": 1000})

        await router.route(text_event("ofertas"), session)

        assert session.current_flow == "agreement_create"
        assert session.current_step == "ask_phone"
        assert session.temp_data["other_party_name"] == "ofertas"

    @pytest.mark.asyncio
    async def test_respond_yes_notification_opens_price_step(self, router, make_session):
        """Test respond_yes_<id> jumps straight to the price question"""
        session = make_session("agreement_list", "my_list")

        await router.route(button_event("respond_yes_15"), session)

        assert (session.current_flow, session.current_step) == ("product_respond", "ask_price")
        assert session.temp_data["request_id"] == 15
        assert session.temp_data["request_description"] == "Cargador USB-C 65W"

    @pytest.mark.asyncio
    async def test_respond_no_notification_records_unavailable(self, router, api, make_session):
        """Test respond_no_<id> records a not-available response"""
        session = make_session()

        await router.route(button_event("respond_no_15"), session)

        assert session.current_step == "done"
        assert api.created_responses[0]["available"] is False


class TestFlowTransitions:
    """go_to_flow, start_flow and the shop-only gate"""

    def test_go_to_flow_clears_temp_data_and_uses_initial_step(self, router, make_session):
        """Test switching flows starts clean at the initial step"""
        session = make_session("agreement_create", "ask_phone", {"direction": "giving", "amount": 5000})

        router.go_to_flow(session, FlowType.FLASH_DEAL_CREATE)

        assert session.current_flow == "flash_deal_create"
        assert session.current_step == "ask_title"
        assert session.temp_data == {}

    def test_go_to_flow_with_explicit_step(self, router, make_session):
        """Test an explicit step of the target flow is honoured"""
        session = make_session()

        router.go_to_flow(session, FlowType.AGREEMENT_LIST, "view_detail")

        assert (session.current_flow, session.current_step) == ("agreement_list", "view_detail")

    def test_go_to_flow_rejects_foreign_step(self, router, make_session):
        """Test a step from another flow is a programming error"""
        session = make_session()

        with pytest.raises(ValueError):
            router.go_to_flow(session, FlowType.AGREEMENT_LIST, "ask_title")

    def test_set_step_rejects_foreign_step(self, router, make_session):
        """Test a flow cannot move to a step it does not declare"""
        session = make_session("offers_manage", "show_my_offers")

        with pytest.raises(InvalidStepError):
            router.flows["offers_manage"].set_step(session, "ask_price")

        assert session.current_step == "show_my_offers"

    @pytest.mark.parametrize("flow", list(FlowType))
    def test_every_flow_is_registered(self, router, flow):
        """Test each flow type has its class and a registered instance"""
        flow_class = FLOW_MAPPING[flow.value]

        assert isinstance(router.flows[flow.value], flow_class)
        assert router.flows[flow.value].router is router

    @pytest.mark.asyncio
    @pytest.mark.parametrize("flow", list(FlowType))
    async def test_start_is_idempotent(self, router, make_session, flow):
        """Test calling start twice leaves the same session state"""
        handler = router.flows[flow.value]
        session = make_session(flow.value, handler.initial_step)

        await handler.start(session)
        first = snapshot(session)
        await handler.start(session)

        assert snapshot(session) == first

    @pytest.mark.asyncio
    async def test_shop_flow_requires_shop_owner(self, router, messenger, api, make_session):
        """Test non-shop users are turned back to the menu"""
        api.users[USER_PHONE]["is_shop_owner"] = False
        session = make_session("main_menu", "awaiting_selection")

        await router.start_flow(session, FlowType.OFFERS_MANAGE)

        assert (session.current_flow, session.current_step) == ("main_menu", "awaiting_selection")
        assert any("dueños de tienda" in m["text"] for m in messenger.of_type("text"))

    @pytest.mark.asyncio
    async def test_menu_selection_starts_flow(self, router, make_session):
        """Test a main-menu row starts its flow at the initial step"""
        session = make_session("main_menu", "awaiting_selection")

        await router.route(list_event("create_agreement"), session)

        assert (session.current_flow, session.current_step) == ("agreement_create", "ask_direction")


class TestFaults:
    """Configuration faults, protocol faults and unexpected exceptions"""

    @pytest.mark.asyncio
    async def test_unknown_flow_goes_to_main_menu(self, router, make_session):
        """Test a stored flow without handler recovers to the main menu"""
        session = make_session("product_upload", "ask_photo", {"x": 1})

        await router.route(text_event("hola?"), session)

        assert (session.current_flow, session.current_step) == ("main_menu", "awaiting_selection")
        assert session.temp_data == {}

    @pytest.mark.asyncio
    async def test_unknown_step_restarts_flow(self, router, make_session):
        """Test an undeclared step restarts the same flow"""
        session = make_session("agreement_create", "ask_colour", {"direction": "giving"})

        await router.route(text_event("rojo"), session)

        assert (session.current_flow, session.current_step) == ("agreement_create", "ask_direction")

    @pytest.mark.asyncio
    async def test_malformed_selection_restarts_flow(self, router, make_session):
        """Test 'agreement_abc' is treated as a protocol fault"""
        session = make_session("agreement_list", "my_list")

        await router.route(list_event("agreement_abc"), session)

        assert (session.current_flow, session.current_step) == ("agreement_list", "my_list")
        assert "view_agreement_id" not in session.temp_data

    @pytest.mark.asyncio
    async def test_exception_restores_session(self, router, messenger, make_session, monkeypatch):
        """Test an exception inside a flow restores the pre-dispatch session"""
        session = make_session("agreement_create", "ask_name", {"direction": "giving", "amount": 1000})
        before = snapshot(session)
        handler = router.flows["agreement_create"]

        async def broken_handle(event, session):
            session.temp_data["amount"] = -1
            handler.set_step(session, "review")
            raise RuntimeError("boom")

        monkeypatch.setattr(handler, "handle", broken_handle)

        await router.route(text_event("Luis"), session)

        assert snapshot(session) == before
        assert messenger.last["buttons"] == ["retry", "menu"]
