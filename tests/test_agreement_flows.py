"""
Tests for the agreement flows

Tests cover:
- Creating an agreement step by step, with back navigation and skips
- Review actions (confirm, edit) and the done step handoffs
- Listing, viewing, completing and cancelling agreements
"""

import pytest

from conftest import USER_PHONE, button_event, list_event, text_event


class TestAgreementCreateFlow:
    """Step-by-step agreement capture"""

    @pytest.fixture
    def session(self, make_session):
        return make_session("agreement_create", "ask_direction")

    @pytest.mark.asyncio
    async def test_full_capture_reaches_review(self, router, messenger, session):
        """Test valid answers walk every capture step up to review"""
        await router.route(button_event("giving"), session)
        assert session.current_step == "ask_amount"

        await router.route(text_event("$50.000"), session)
        assert session.current_step == "ask_name"
        assert session.temp_data["amount"] == 50000

        await router.route(text_event("  Luis   Pérez "), session)
        assert session.temp_data["other_party_name"] == "Luis Pérez"

        await router.route(text_event("+57 300 999 8877"), session)
        assert session.temp_data["other_party_phone"] == "573009998877"
        assert session.current_step == "ask_purpose"

        await router.route(list_event("loan"), session)
        assert session.current_step == "ask_description"

        await router.route(button_event("skip"), session)
        assert session.current_step == "ask_due_date"
        assert "description" not in session.temp_data

        await router.route(list_event("1month"), session)
        assert session.current_step == "review"
        assert session.temp_data["due_date_selection"] == "1month"
        assert session.temp_data["due_date"]
        assert messenger.last["buttons"] == ["confirm", "edit", "cancel"]

    @pytest.mark.asyncio
    async def test_invalid_amount_stays_on_step(self, router, messenger, make_session):
        """Test a zero amount is rejected with a message"""
        session = make_session("agreement_create", "ask_amount", {"direction": "giving"})

        await router.route(text_event("0"), session)

        assert session.current_step == "ask_amount"
        assert "amount" not in session.temp_data
        assert messenger.sent[0]["text"].startswith("⚠️")

    @pytest.mark.asyncio
    async def test_own_phone_is_rejected(self, router, messenger, make_session):
        """Test the creator cannot make an agreement with their own number"""
        session = make_session("agreement_create", "ask_phone", {"direction": "giving", "amount": 100, "other_party_name": "Yo"})

        await router.route(text_event(USER_PHONE), session)

        assert session.current_step == "ask_phone"
        assert "contigo mismo" in messenger.sent[0]["text"]

    @pytest.mark.asyncio
    async def test_validation_error_precedes_reprompt(self, router, messenger, make_session):
        """Test the concrete validation error is sent once, then the same question again"""
        session = make_session("agreement_create", "ask_phone", {"direction": "giving", "amount": 100, "other_party_name": "Yo"})

        await router.route(text_event(USER_PHONE), session)

        assert [m["type"] for m in messenger.sent] == ["text", "buttons"]
        assert messenger.sent[0]["text"] == "⚠️ No puedes crear un acuerdo contigo mismo"
        assert messenger.sent[1]["buttons"] == ["back", "cancel"]

    @pytest.mark.asyncio
    async def test_back_returns_to_previous_step(self, router, make_session):
        """Test 'atrás' goes one step back keeping captured data"""
        session = make_session("agreement_create", "ask_name", {"direction": "giving", "amount": 100})

        await router.route(text_event("atrás"), session)

        assert session.current_step == "ask_amount"
        assert session.temp_data["amount"] == 100

    @pytest.mark.asyncio
    async def test_back_from_first_step_leaves_flow(self, router, session):
        """Test going back from the first question returns to the menu"""
        await router.route(button_event("back"), session)

        assert (session.current_flow, session.current_step) == ("main_menu", "awaiting_selection")

    @pytest.mark.asyncio
    async def test_edit_restarts_capture(self, router, make_session):
        """Test 'edit' at review starts over with an empty draft"""
        session = make_session("agreement_create", "review", {"direction": "giving", "amount": 100})

        await router.route(button_event("edit"), session)

        assert session.current_step == "ask_direction"
        assert session.temp_data == {}

    @pytest.mark.asyncio
    async def test_done_hands_off_to_agreement_list(self, router, make_session):
        """Test 'my_agreements' after creation opens the agreement list"""
        session = make_session("agreement_create", "done", {"created_agreement_id": 100})

        await router.route(button_event("my_agreements"), session)

        assert (session.current_flow, session.current_step) == ("agreement_list", "my_list")
        assert session.temp_data == {}

    @pytest.mark.asyncio
    async def test_unregistered_user_cannot_create(self, router, api, messenger, make_session):
        """Test confirming without an account sends the user back to the menu"""
        api.users.clear()
        session = make_session("agreement_create", "review", {"direction": "giving", "amount": 100})

        await router.route(button_event("confirm"), session)

        assert session.current_flow == "main_menu"
        assert api.created_agreements == []
        assert any("cuenta registrada" in m["text"] for m in messenger.of_type("text"))


class TestAgreementListFlow:
    """Listing and acting on existing agreements"""

    @pytest.mark.asyncio
    async def test_start_lists_agreements(self, router, messenger, make_session):
        """Test the list shows one row per agreement plus a create shortcut"""
        session = make_session("main_menu", "awaiting_selection")

        await router.route(list_event("my_agreements"), session)

        assert (session.current_flow, session.current_step) == ("agreement_list", "my_list")
        assert messenger.last["rows"] == ["agreement_42", "agreement_43", "create_agreement"]

    @pytest.mark.asyncio
    async def test_list_failure_offers_retry(self, router, api, messenger, make_session):
        """Test a failing list keeps the step and offers a retry"""
        api.failing.add("list_agreements")
        session = make_session("main_menu", "awaiting_selection")

        await router.route(list_event("my_agreements"), session)

        assert session.current_step == "my_list"
        assert messenger.last["buttons"] == ["retry", "menu"]

        api.failing.clear()
        await router.route(button_event("retry"), session)
        assert messenger.last["type"] == "list"

    @pytest.mark.asyncio
    async def test_mark_complete_confirmation(self, router, api, make_session):
        """Test completing a confirmed agreement after confirmation"""
        session = make_session("agreement_list", "view_detail", {"view_agreement_id": 42})

        await router.route(button_event("mark_complete"), session)
        assert session.current_step == "mark_complete"

        await router.route(button_event("confirm_complete"), session)

        assert api.completed_agreements == [42]
        assert session.current_step == "my_list"
        assert session.temp_data == {}

    @pytest.mark.asyncio
    async def test_mark_complete_failure_keeps_step(self, router, api, messenger, make_session):
        """Test a failing completion stays on mark_complete with a retry button"""
        api.failing.add("mark_agreement_complete")
        session = make_session("agreement_list", "mark_complete", {"view_agreement_id": 42})

        await router.route(button_event("confirm_complete"), session)

        assert session.current_step == "mark_complete"
        assert messenger.last["buttons"] == ["confirm_complete", "menu"]

    @pytest.mark.asyncio
    async def test_pending_agreement_can_be_cancelled_by_creator(self, router, api, messenger, make_session):
        """Test the creator of a pending agreement sees and uses the cancel action"""
        session = make_session("agreement_list", "my_list")

        await router.route(list_event("agreement_43"), session)
        assert "cancel_agreement" in messenger.last["buttons"]

        await router.route(button_event("cancel_agreement"), session)

        assert api.cancelled_agreements == [43]
        assert session.current_step == "my_list"

    @pytest.mark.asyncio
    async def test_back_from_detail_returns_to_list(self, router, make_session):
        """Test 'back' in the detail view shows the list again"""
        session = make_session("agreement_list", "view_detail", {"view_agreement_id": 42})

        await router.route(button_event("back"), session)

        assert session.current_step == "my_list"
        assert session.temp_data == {}

    @pytest.mark.asyncio
    async def test_missing_agreement_returns_to_list(self, router, messenger, make_session):
        """Test a deleted agreement sends a notice and the list, not a retry button"""
        session = make_session("agreement_list", "my_list")

        await router.route(list_event("agreement_99"), session)

        assert (session.current_flow, session.current_step) == ("agreement_list", "my_list")
        assert session.temp_data == {}
        assert any("ya no existe" in m["text"] for m in messenger.of_type("text"))
        assert all("retry" not in m["buttons"] for m in messenger.of_type("buttons"))
        assert messenger.last["rows"] == ["agreement_42", "agreement_43", "create_agreement"]

    @pytest.mark.asyncio
    async def test_agreement_without_optional_fields_is_listed(self, router, api, messenger, make_session):
        """Test null names and statuses from the backend still render"""
        api.agreements[44] = {"id": 44, "agreement_number": None, "amount": None, "status": None, "other_party_name": None}
        session = make_session("agreement_list", "my_list")

        await router.route(button_event("retry"), session)
        assert "agreement_44" in messenger.last["rows"]

        await router.route(list_event("agreement_44"), session)
        assert session.current_step == "view_detail"
        assert "*Otra parte:* -" in messenger.last["text"]
