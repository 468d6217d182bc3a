# tests/integration/test_conversation_manager.py
from datetime import timedelta

import pytest

from panikkar.core.timezone_helper import TimezoneHelper
from panikkar.models.flow_type import FlowType
from panikkar.models.session import ConversationSession
from panikkar.services.conversation.conversation_manager import ConversationManager
from panikkar.services.session import InMemorySessionStore
from panikkar.services.whatsapp import WhatsAppAPIError
from tests.helpers import PHONE, button, location, sent_anything_containing, text


@pytest.fixture
def manager(api, messenger, store):
    return ConversationManager(api=api, messenger=messenger, store=store)


async def stored(store: InMemorySessionStore) -> ConversationSession:
    return await store.load(PHONE)


@pytest.mark.asyncio
async def test_greeting_opens_the_menu(manager, store, messenger):
    assert await manager.process_message(text("Hi", message_id="wamid.1")) is True

    session = await stored(store)
    assert session.flow_type == FlowType.MAIN_MENU.value
    assert session.current_step == "awaiting_selection"
    assert session.last_message_id == "wamid.1"
    messenger.mark_as_read.assert_awaited_once_with("wamid.1")
    messenger.send_list.assert_awaited_once()


@pytest.mark.asyncio
async def test_registration_end_to_end(manager, store, api, messenger):
    api.register_user.return_value = {"id": 55}

    await manager.process_message(text("hello", message_id="wamid.1"))
    await manager.process_message(text("register", message_id="wamid.2"))
    await manager.process_message(text("Lakshmi Nair", message_id="wamid.3"))
    await manager.process_message(location())
    await manager.process_message(button("confirm_registration"))

    session = await stored(store)
    assert session.user_id == 55
    assert session.flow_type == FlowType.REGISTRATION.value
    assert session.current_step == "complete"
    assert session.temp_data == {}
    assert sent_anything_containing(messenger, "Welcome, Lakshmi Nair!")


@pytest.mark.asyncio
async def test_known_phone_is_linked_to_its_user(manager, store, api):
    api.get_user_by_phone.return_value = {"id": 7, "name": "Ravi"}

    await manager.process_message(text("post"))

    session = await stored(store)
    assert session.user_id == 7
    assert session.flow_type == FlowType.JOB_POST.value


@pytest.mark.asyncio
async def test_redelivered_message_is_ignored(manager, messenger, api):
    first = text("Hi", message_id="wamid.9")

    assert await manager.process_message(first) is True
    assert await manager.process_message(first) is False

    messenger.send_list.assert_awaited_once()
    api.mark_message_processed.assert_awaited_once()


@pytest.mark.asyncio
async def test_pause_mid_flow_repeats_the_question(manager, store, messenger):
    await store.save(ConversationSession(
        phone=PHONE,
        user_id=7,
        flow_type="job_post",
        current_step="enter_title",
        temp_data={"category_id": 1, "category_name": "Cleaning"},
        last_activity_at=TimezoneHelper.now() - timedelta(minutes=15),
    ))

    await manager.process_message(text("Wash the car"))

    session = await stored(store)
    assert session.current_step == "enter_title"
    assert "title" not in session.temp_data
    assert sent_anything_containing(messenger, "Welcome back!")


@pytest.mark.asyncio
async def test_short_pause_continues_normally(manager, store):
    await store.save(ConversationSession(
        phone=PHONE,
        user_id=7,
        flow_type="job_post",
        current_step="enter_title",
        temp_data={"category_id": 1, "category_name": "Cleaning"},
        last_activity_at=TimezoneHelper.now() - timedelta(minutes=2),
    ))

    await manager.process_message(text("Wash the car"))

    session = await stored(store)
    assert session.current_step == "enter_description"
    assert session.temp_data["title"] == "Wash the car"


@pytest.mark.asyncio
async def test_send_failure_propagates_and_nothing_is_saved(manager, store, messenger):
    messenger.send_list.side_effect = WhatsAppAPIError("bad token")

    with pytest.raises(WhatsAppAPIError):
        await manager.process_message(text("Hi", message_id="wamid.1"))

    assert await stored(store) is None


@pytest.mark.asyncio
async def test_timeout_sweep_resets_abandoned_runs(manager, store, api):
    old = TimezoneHelper.now() - timedelta(hours=2)
    await store.save(ConversationSession(
        phone=PHONE,
        user_id=7,
        flow_type="job_worker_register",
        current_step="ask_vehicle",
        temp_data={"photo_path": "workers/a.jpg", "job_types": [1]},
        last_activity_at=old,
    ))

    count = await manager.expire_idle_sessions()

    assert count == 1
    api.delete_media.assert_awaited_once_with("workers/a.jpg")
    session = await stored(store)
    assert session.flow_type == FlowType.MAIN_MENU.value
    assert session.current_step == "idle"
    assert session.temp_data == {}

    assert await manager.expire_idle_sessions() == 0


def _ready_to_post() -> ConversationSession:
    return ConversationSession(
        phone=PHONE,
        user_id=7,
        flow_type="job_post",
        current_step="confirm_post",
        temp_data={
            "category_id": 2,
            "category_name": "Shifting",
            "title": "Shift sofa to first floor",
            "location_name": "Edappally, Kochi",
            "job_date": "2030-01-10",
            "job_time": "09:00",
            "duration_hours": 2,
            "pay_amount": 1200,
        },
    )


@pytest.mark.asyncio
async def test_failed_announcement_never_posts_the_job_twice(manager, store, api, messenger):
    await store.save(_ready_to_post())
    api.create_job_post.return_value = {"id": 77, "jobNumber": "JP-0077"}
    messenger.send_buttons.side_effect = WhatsAppAPIError("timeout")
    confirm = button("confirm_post", message_id="wamid.confirm")

    with pytest.raises(WhatsAppAPIError):
        await manager.process_message(confirm)

    session = await stored(store)
    assert session.current_step == "complete"
    assert session.temp_data == {}

    # the webhook retries the same message
    messenger.send_buttons.side_effect = None
    assert await manager.process_message(confirm) is False

    api.create_job_post.assert_awaited_once()
    assert (await stored(store)).current_step == "complete"
    api.mark_message_processed.assert_awaited_once()


@pytest.mark.asyncio
async def test_input_after_completion_goes_back_to_the_menu(manager, store, api, messenger):
    await store.save(_ready_to_post())
    api.create_job_post.return_value = {"id": 77, "jobNumber": "JP-0077"}

    await manager.process_message(button("confirm_post", message_id="wamid.1"))
    await manager.process_message(button("confirm_post", message_id="wamid.2"))

    api.create_job_post.assert_awaited_once()
    session = await stored(store)
    assert session.flow_type == FlowType.MAIN_MENU.value
