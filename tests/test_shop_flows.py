"""
Tests for the shop-owner flows: offer management and product responses
"""

import pytest

from conftest import button_event, image_event, list_event, text_event


class TestOfferManageFlow:
    """Offer list, stats and deletion"""

    @pytest.mark.asyncio
    async def test_list_rows_use_manage_prefix(self, router, messenger, make_session):
        """Test each offer row id is manage_<id>"""
        session = make_session()

        await router.route(text_event("ofertas"), session)

        assert messenger.last["rows"] == ["manage_11"]

    @pytest.mark.asyncio
    async def test_selecting_offer_opens_manage_options(self, router, messenger, make_session):
        """Test picking an offer shows the stats/delete/back buttons"""
        session = make_session("offers_manage", "show_my_offers")

        await router.route(list_event("manage_11"), session)

        assert session.current_step == "manage_offer"
        assert session.temp_data == {"manage_offer_id": 11}
        assert messenger.last["buttons"] == ["stats", "delete", "back"]

    @pytest.mark.asyncio
    async def test_stats_keeps_step(self, router, messenger, make_session):
        """Test stats are sent without leaving manage_offer"""
        session = make_session("offers_manage", "manage_offer", {"manage_offer_id": 11})

        await router.route(text_event("stats"), session)

        assert session.current_step == "manage_offer"
        assert any("Vistas:* 130" in m["text"] for m in messenger.of_type("text"))

    @pytest.mark.asyncio
    async def test_text_remove_asks_confirmation(self, router, make_session):
        """Test typing 'remove' works like the delete button"""
        session = make_session("offers_manage", "manage_offer", {"manage_offer_id": 11})

        await router.route(text_event("remove"), session)

        assert session.current_step == "delete_confirm"

    @pytest.mark.asyncio
    async def test_confirm_delete_removes_offer(self, router, api, make_session):
        """Test confirming deletes the offer and returns to the list"""
        session = make_session("offers_manage", "delete_confirm", {"manage_offer_id": 11})

        await router.route(button_event("confirm_delete"), session)

        assert api.deleted_offers == [11]
        assert session.current_step == "show_my_offers"

    @pytest.mark.asyncio
    async def test_cancel_delete_returns_to_manage(self, router, api, make_session):
        """Test declining keeps the offer and goes back to its options"""
        session = make_session("offers_manage", "delete_confirm", {"manage_offer_id": 11})

        await router.route(button_event("cancel_delete"), session)

        assert api.deleted_offers == []
        assert session.current_step == "manage_offer"

    @pytest.mark.asyncio
    async def test_delete_failure_keeps_confirm_step(self, router, api, messenger, make_session):
        """Test a failing delete stays on delete_confirm with a retry"""
        api.failing.add("delete_offer")
        session = make_session("offers_manage", "delete_confirm", {"manage_offer_id": 11})

        await router.route(button_event("confirm_delete"), session)

        assert session.current_step == "delete_confirm"
        assert messenger.last["buttons"] == ["confirm_delete", "menu"]

    @pytest.mark.asyncio
    async def test_offer_without_title_is_listed(self, router, api, messenger, make_session):
        """Test an offer whose title is null still gets a readable row"""
        api.offers[12] = {"id": 12, "title": None, "discount_percent": None, "claims": None}
        session = make_session("offers_manage", "show_my_offers")

        await router.route(button_event("retry"), session)

        assert messenger.last["rows"] == ["manage_11", "manage_12"]

    @pytest.mark.asyncio
    async def test_stats_of_deleted_offer_returns_to_list(self, router, api, messenger, make_session):
        """Test stats for an offer that no longer exists go back to the list without a retry"""
        session = make_session("offers_manage", "manage_offer", {"manage_offer_id": 99})

        await router.route(button_event("stats"), session)

        assert session.current_step == "show_my_offers"
        assert session.temp_data == {}
        assert any("ya no existe" in m["text"] for m in messenger.of_type("text"))
        assert messenger.last["rows"] == ["manage_11"]

    @pytest.mark.asyncio
    async def test_deleting_missing_offer_returns_to_list(self, router, api, messenger, make_session):
        """Test confirming the delete of an offer already gone goes back to the list"""
        session = make_session("offers_manage", "delete_confirm", {"manage_offer_id": 99})

        await router.route(button_event("confirm_delete"), session)

        assert api.deleted_offers == []
        assert session.current_step == "show_my_offers"
        assert all("confirm_delete" not in m["buttons"] for m in messenger.of_type("buttons"))


class TestProductRespondFlow:
    """Answering customer product requests"""

    @pytest.mark.asyncio
    async def test_list_shows_open_requests_only(self, router, messenger, make_session):
        """Test closed requests are not listed"""
        session = make_session()

        await router.route(text_event("solicitudes"), session)

        assert (session.current_flow, session.current_step) == ("product_respond", "view_requests")
        assert messenger.last["rows"] == ["req_15"]

    @pytest.mark.asyncio
    async def test_price_with_details(self, router, make_session):
        """Test '1500, modelo Samsung' stores price and details"""
        session = make_session("product_respond", "ask_price", {"request_id": 15})

        await router.route(text_event("1500, modelo Samsung"), session)

        assert session.current_step == "ask_photo"
        assert session.temp_data["price"] == 1500
        assert session.temp_data["details"] == "modelo Samsung"

    @pytest.mark.asyncio
    async def test_invalid_price_reprompts(self, router, messenger, make_session):
        """Test a non-numeric price keeps ask_price"""
        session = make_session("product_respond", "ask_price", {"request_id": 15})

        await router.route(text_event("barato"), session)

        assert session.current_step == "ask_price"
        assert "price" not in session.temp_data
        assert messenger.sent[0]["text"].startswith("⚠️")

    @pytest.mark.asyncio
    async def test_photo_sends_response(self, router, api, make_session):
        """Test sending a photo creates the response and finishes"""
        session = make_session("product_respond", "ask_photo", {"request_id": 15, "price": 1500})

        await router.route(image_event("photo-9"), session)

        assert session.current_step == "done"
        assert api.created_responses[0]["photo_media_id"] == "photo-9"
        assert api.created_responses[0]["price"] == 1500

    @pytest.mark.asyncio
    async def test_skip_photo_sends_response_without_photo(self, router, api, make_session):
        """Test 'omitir' sends the response without a photo"""
        session = make_session("product_respond", "ask_photo", {"request_id": 15, "price": 1500})

        await router.route(text_event("omitir"), session)

        assert session.current_step == "done"
        assert api.created_responses[0]["photo_media_id"] is None

    @pytest.mark.asyncio
    async def test_response_failure_keeps_photo_step(self, router, api, messenger, make_session):
        """Test a failing send stays on ask_photo and retrying succeeds"""
        api.failing.add("create_response")
        session = make_session("product_respond", "ask_photo", {"request_id": 15, "price": 1500})

        await router.route(image_event("photo-9"), session)

        assert session.current_step == "ask_photo"
        assert messenger.last["buttons"] == ["send_response", "menu"]

        api.failing.clear()
        await router.route(button_event("send_response"), session)

        assert session.current_step == "done"
        assert api.created_responses[0]["photo_media_id"] == "photo-9"

    @pytest.mark.asyncio
    async def test_duplicate_response_is_refused(self, router, api, messenger, make_session):
        """Test a shop cannot answer the same request twice"""
        api.responded.add(15)
        session = make_session()

        await router.route(button_event("respond_yes_15"), session)

        assert session.current_step == "view_requests"
        assert any("Ya respondiste" in m["text"] for m in messenger.of_type("text"))

    @pytest.mark.asyncio
    async def test_closed_request_is_refused(self, router, messenger, make_session):
        """Test closed requests cannot be answered"""
        session = make_session()

        await router.route(button_event("respond_yes_16"), session)

        assert session.current_step == "view_requests"
        assert any("cerrada" in m["text"] for m in messenger.of_type("text"))

    @pytest.mark.asyncio
    async def test_missing_request_is_refused(self, router, messenger, make_session):
        """Test an unknown request id is reported as expired"""
        session = make_session()

        await router.route(button_event("respond_skip_99"), session)

        assert session.current_step == "view_requests"
        assert any("no existe" in m["text"] for m in messenger.of_type("text"))

    @pytest.mark.asyncio
    async def test_done_more_requests_restarts(self, router, make_session):
        """Test 'more_requests' lists requests again"""
        session = make_session("product_respond", "done", {"request_id": 15})

        await router.route(button_event("more_requests"), session)

        assert session.current_step == "view_requests"
        assert session.temp_data == {}

    @pytest.mark.asyncio
    async def test_request_without_description_is_listed(self, router, api, messenger, make_session):
        """Test a request whose description is null is listed by its number"""
        api.requests[17] = {"id": 17, "description": None, "status": "open"}
        session = make_session()

        await router.route(text_event("solicitudes"), session)

        assert session.current_step == "view_requests"
        assert messenger.last["rows"] == ["req_15", "req_17"]

        await router.route(list_event("req_17"), session)

        assert session.current_step == "ask_price"
        assert session.temp_data["request_id"] == 17


class TestNotificationDuringAnotherFlow:
    """Notification buttons tapped while another flow is in progress"""

    DRAFT = {"title": "Combo almuerzo", "discount_percent": 30, "max_discount_value": 0}

    @pytest.mark.asyncio
    async def test_missing_request_keeps_current_draft(self, router, messenger, make_session):
        """Test an expired request leaves the flash deal draft and step as they were"""
        session = make_session("flash_deal_create", "ask_target", dict(self.DRAFT))

        await router.route(button_event("respond_yes_99"), session)

        assert (session.current_flow, session.current_step) == ("flash_deal_create", "ask_target")
        assert session.temp_data == self.DRAFT
        assert any("no existe" in m["text"] for m in messenger.of_type("text"))
        assert "reclamos" in messenger.last["text"]

    @pytest.mark.asyncio
    async def test_answered_request_keeps_current_draft(self, router, api, make_session):
        """Test a request already answered does not discard the flow in progress"""
        api.responded.add(15)
        session = make_session("flash_deal_create", "ask_target", dict(self.DRAFT))

        await router.route(button_event("respond_no_15"), session)

        assert (session.current_flow, session.current_step) == ("flash_deal_create", "ask_target")
        assert session.temp_data == self.DRAFT
        assert api.created_responses == []

    @pytest.mark.asyncio
    async def test_open_request_replaces_current_flow(self, router, make_session):
        """Test a valid request switches to answering it"""
        session = make_session("flash_deal_create", "ask_target", dict(self.DRAFT))

        await router.route(button_event("respond_yes_15"), session)

        assert (session.current_flow, session.current_step) == ("product_respond", "ask_price")
        assert session.temp_data["request_id"] == 15
        assert "title" not in session.temp_data
