# tests/unit/test_navigation.py
import pytest

from panikkar.models.flow_type import FlowType
from panikkar.services.conversation import messages
from panikkar.services.conversation.navigation import NavigationInterceptor
from tests.helpers import (
    button,
    image,
    last_button_ids,
    registered_session,
    sent_anything_containing,
    text,
)

MID_FLOW_STATES = [
    (FlowType.REGISTRATION, "ask_name"),
    (FlowType.REGISTRATION, "confirm"),
    (FlowType.WORKER_REGISTRATION, "ask_photo"),
    (FlowType.WORKER_REGISTRATION, "ask_job_types"),
    (FlowType.JOB_POST, "select_category"),
    (FlowType.JOB_POST, "enter_pay"),
    (FlowType.JOB_POST, "confirm_post"),
    (FlowType.JOB_APPLICATION, "enter_message"),
    (FlowType.JOB_APPLICATION, "confirm_application"),
]


@pytest.fixture
def interceptor(router, sessions, messenger):
    return NavigationInterceptor(router, sessions, messenger)


@pytest.mark.asyncio
@pytest.mark.parametrize("flow_type,step", MID_FLOW_STATES)
@pytest.mark.parametrize("command", [text("menu"), text("Hi"), text("0"), button("main_menu")])
async def test_menu_command_always_leaves_the_flow(interceptor, flow_type, step, command):
    session = registered_session(flow_type=flow_type.value, current_step=step, temp_data={"title": "Paint wall"})

    handled = await interceptor.intercept(command, session)

    assert handled is True
    assert session.flow_type == FlowType.MAIN_MENU.value
    assert session.temp_data == {}


@pytest.mark.asyncio
async def test_cancel_mid_flow_resets_to_idle(interceptor, messenger):
    session = registered_session(flow_type="job_post", current_step="enter_title", temp_data={"category_id": 1})

    handled = await interceptor.intercept(text("Cancel"), session)

    assert handled is True
    assert session.flow_type == FlowType.MAIN_MENU.value
    assert session.current_step == "idle"
    assert session.temp_data == {}
    assert sent_anything_containing(messenger, messages.CANCELLED)
    assert last_button_ids(messenger) == ["main_menu"]


@pytest.mark.asyncio
async def test_cancel_button_at_confirmation(interceptor):
    session = registered_session(flow_type="job_post", current_step="confirm_post", temp_data={"title": "x"})

    assert await interceptor.intercept(button("cancel"), session) is True
    assert session.flow_type == FlowType.MAIN_MENU.value


@pytest.mark.asyncio
async def test_cancel_while_idle_is_not_a_command(interceptor, messenger):
    session = registered_session()

    handled = await interceptor.intercept(text("stop"), session)

    assert handled is False
    messenger.send_buttons.assert_not_awaited()


@pytest.mark.asyncio
async def test_retry_repeats_current_question_without_changes(interceptor, messenger):
    session = registered_session(
        flow_type="job_post", current_step="enter_location", temp_data={"title": "Clean the yard"}
    )

    handled = await interceptor.intercept(text("retry"), session)

    assert handled is True
    assert session.current_step == "enter_location"
    assert session.temp_data == {"title": "Clean the yard"}
    assert sent_anything_containing(messenger, "Where is the job?")


@pytest.mark.asyncio
async def test_help_mid_flow_offers_retry(interceptor, messenger):
    session = registered_session(flow_type="job_post", current_step="enter_title")

    handled = await interceptor.intercept(text("?"), session)

    assert handled is True
    assert session.current_step == "enter_title"
    assert sent_anything_containing(messenger, messages.HELP)
    assert last_button_ids(messenger) == ["retry", "main_menu"]


@pytest.mark.asyncio
async def test_help_while_idle_offers_menu_only(interceptor, messenger):
    await interceptor.intercept(text("help"), registered_session())

    assert last_button_ids(messenger) == ["main_menu"]


@pytest.mark.asyncio
@pytest.mark.parametrize("message", [text("Need a plumber"), image(), button("confirm_post")])
async def test_ordinary_messages_pass_through(interceptor, message):
    session = registered_session(flow_type="job_post", current_step="confirm_post")

    assert await interceptor.intercept(message, session) is False


@pytest.mark.asyncio
async def test_intercept_never_raises(interceptor, router, mocker):
    mocker.patch.object(router, "go_to_main_menu", side_effect=RuntimeError("boom"))
    session = registered_session(flow_type="job_post", current_step="enter_title")

    assert await interceptor.intercept(text("menu"), session) is False
