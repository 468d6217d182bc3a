# tests/unit/test_base_flow.py
from enum import Enum
from typing import Optional

import pytest
from pydantic import BaseModel

from panikkar.models.flow_type import FlowType
from panikkar.services.conversation import messages
from panikkar.services.conversation.flow_router import FlowRouter
from panikkar.services.conversation.flows import (
    BaseFlow,
    FlowDefinitionError,
    InvalidTransitionError,
    MainMenuFlow,
    StepResult,
    StepSpec,
)
from panikkar.services.conversation.flows.step import SELECTION, TEXT
from panikkar.services.external import PanikkarApiError
from panikkar.services.session import EDIT_RETURN_KEY
from panikkar.services.whatsapp import WhatsAppAPIError
from tests.helpers import PHONE, button, location, new_session, sent_anything_containing, text, last_button_ids


class DemoStep(str, Enum):
    ASK_NAME = "ask_name"
    ASK_AMOUNT = "ask_amount"
    CONFIRM = "confirm"
    DONE = "done"


class DemoDraft(BaseModel):
    name: Optional[str] = None
    amount: Optional[int] = None


class DemoFlow(BaseFlow):
    """Three questions and a terminal step, the smallest complete flow."""

    flow_type = FlowType.REGISTRATION
    steps = DemoStep
    first_step = DemoStep.ASK_NAME
    terminal_step = DemoStep.DONE
    confirm_step = DemoStep.CONFIRM
    edit_targets = {"edit_name": DemoStep.ASK_NAME, "edit_amount": DemoStep.ASK_AMOUNT}
    draft_model = DemoDraft

    def step_table(self):
        return {
            DemoStep.ASK_NAME: StepSpec(self._handle_name, self._ask("Name?"), TEXT, next=DemoStep.ASK_AMOUNT),
            DemoStep.ASK_AMOUNT: StepSpec(self._handle_amount, self._ask("Amount?"), TEXT, next=DemoStep.CONFIRM),
            DemoStep.CONFIRM: StepSpec(self._handle_confirm, self._ask("Confirm?"), SELECTION, next=DemoStep.DONE),
        }

    def _ask(self, question):
        async def prompt(session):
            await self.send_text(session, question)
        return prompt

    async def _handle_name(self, message, session):
        return StepResult.advance({"name": message.text.strip()})

    async def _handle_amount(self, message, session):
        if not message.text.strip().isdigit():
            return StepResult.invalid("Amount must be a number")
        return StepResult.advance({"amount": int(message.text)})

    async def _handle_confirm(self, message, session):
        if message.action != "confirm":
            return StepResult.invalid()
        await self.api.create_job_post(self.temp.snapshot(session))
        return StepResult.complete()


@pytest.fixture
def demo(sessions, messenger, api):
    router = FlowRouter(sessions, messenger)
    router.register(MainMenuFlow(messenger, sessions, api))
    flow = DemoFlow(messenger, sessions, api)
    router.register(flow)
    return flow


async def _at_confirm(demo):
    session = new_session()
    await demo.start(session)
    await demo.handle(text("Rahul"), session)
    await demo.handle(text("500"), session)
    return session


@pytest.mark.asyncio
async def test_example_scenario(demo, api):
    session = new_session()

    await demo.start(session)
    assert session.current_step == "ask_name"

    await demo.handle(text("Rahul"), session)
    assert session.current_step == "ask_amount"
    assert session.temp_data["name"] == "Rahul"

    await demo.handle(text("abc"), session)
    assert session.current_step == "ask_amount"
    assert session.temp_data == {"name": "Rahul"}

    await demo.handle(text("500"), session)
    assert session.current_step == "confirm"
    assert session.temp_data["amount"] == 500

    await demo.handle(button("confirm"), session)
    api.create_job_post.assert_awaited_once_with({"name": "Rahul", "amount": 500})
    assert session.current_step == "done"
    assert session.temp_data == {}


@pytest.mark.asyncio
async def test_start_resets_any_prior_state(demo):
    session = new_session(flow_type="job_post", current_step="enter_pay", temp_data={"title": "old", "_edit_return": "x"})

    await demo.start(session)

    assert session.flow_type == FlowType.REGISTRATION.value
    assert session.current_step == "ask_name"
    assert session.temp_data == {}

    # starting again is harmless
    await demo.start(session)
    assert session.current_step == "ask_name"
    assert session.temp_data == {}


@pytest.mark.asyncio
async def test_invalid_input_changes_nothing_and_reprompts(demo, messenger):
    session = new_session()
    await demo.start(session)
    await demo.handle(text("Rahul"), session)
    messenger.send_text.reset_mock()

    await demo.handle(text("five hundred"), session)

    assert session.current_step == "ask_amount"
    assert session.temp_data == {"name": "Rahul"}
    sent = [call.args[1] for call in messenger.send_text.await_args_list]
    assert sent == ["❌ Amount must be a number", "Amount?"]


@pytest.mark.asyncio
async def test_prompt_current_step_repeats_the_step_question(demo, messenger):
    session = new_session()
    await demo.start(session)
    await demo.handle(text("Rahul"), session)
    messenger.send_text.reset_mock()

    await demo.prompt_current_step(session)

    assert session.current_step == "ask_amount"
    assert [call.args[1] for call in messenger.send_text.await_args_list] == ["Amount?"]


@pytest.mark.asyncio
async def test_duplicate_confirm_creates_once(demo, api):
    session = await _at_confirm(demo)

    await demo.handle(button("confirm"), session)
    await demo.handle(button("confirm"), session)

    api.create_job_post.assert_awaited_once()
    # input after completion returns to the menu
    assert session.flow_type == FlowType.MAIN_MENU.value


@pytest.mark.asyncio
async def test_edit_returns_to_confirmation_keeping_other_fields(demo):
    session = await _at_confirm(demo)

    await demo.handle(button("edit_amount"), session)
    assert session.current_step == "ask_amount"
    assert session.temp_data[EDIT_RETURN_KEY] == "confirm"

    await demo.handle(text("900"), session)

    assert session.current_step == "confirm"
    assert session.temp_data == {"name": "Rahul", "amount": 900}


@pytest.mark.asyncio
async def test_invalid_input_during_edit_keeps_return_marker(demo):
    session = await _at_confirm(demo)
    await demo.handle(button("edit_amount"), session)

    await demo.handle(text("lots"), session)

    assert session.current_step == "ask_amount"
    assert session.temp_data[EDIT_RETURN_KEY] == "confirm"
    assert session.temp_data["amount"] == 500


@pytest.mark.asyncio
async def test_unknown_step_restarts_flow(demo):
    session = new_session(flow_type=FlowType.REGISTRATION.value, current_step="ask_shop_name", temp_data={"x": 1})

    await demo.handle(text("anything"), session)

    assert session.current_step == "ask_name"
    assert session.temp_data == {}


@pytest.mark.asyncio
async def test_wrong_message_kind_is_rejected_before_handler(demo, messenger):
    session = new_session()
    await demo.start(session)

    await demo.handle(location(), session)

    assert session.current_step == "ask_name"
    assert "name" not in session.temp_data
    assert sent_anything_containing(messenger, "Please type your answer.")


@pytest.mark.asyncio
async def test_service_failure_keeps_step_and_offers_retry(demo, api, messenger):
    session = await _at_confirm(demo)
    api.create_job_post.side_effect = PanikkarApiError("backend down", 503)

    await demo.handle(button("confirm"), session)

    assert session.current_step == "confirm"
    assert session.temp_data == {"name": "Rahul", "amount": 500}
    assert sent_anything_containing(messenger, messages.SERVICE_FAILURE)
    assert last_button_ids(messenger) == ["retry", "main_menu"]


@pytest.mark.asyncio
async def test_skip_goes_to_the_skip_target(sessions, messenger, api):
    class NamelessFlow(DemoFlow):
        def step_table(self):
            table = super().step_table()
            table[DemoStep.ASK_NAME] = StepSpec(
                self._handle_name,
                self._ask("Name?"),
                TEXT,
                next=DemoStep.ASK_AMOUNT,
                skip_next=DemoStep.CONFIRM,
                optional=True,
                skip_field="name",
                skip_default="Guest",
            )
            return table

    flow = NamelessFlow(messenger, sessions, api)
    session = new_session()
    await flow.start(session)

    await flow.handle(text("skip"), session)

    assert session.current_step == "confirm"
    assert session.temp_data == {"name": "Guest"}


@pytest.mark.asyncio
async def test_completion_is_saved_before_the_reply_is_sent(demo, api, messenger, store):
    session = await _at_confirm(demo)
    session.last_message_id = "wamid.confirm"
    messenger.send_buttons.side_effect = WhatsAppAPIError("timeout")

    with pytest.raises(WhatsAppAPIError):
        await demo.handle(button("confirm"), session)

    saved = await store.load(PHONE)
    assert saved.current_step == "done"
    assert saved.temp_data == {}
    assert saved.last_message_id == "wamid.confirm"
    api.create_job_post.assert_awaited_once()


@pytest.mark.asyncio
async def test_completion_reply_replaces_default_prompt(sessions, messenger, api):
    class ReplyingFlow(DemoFlow):
        async def _handle_confirm(self, message, session):
            return StepResult.complete(reply=lambda s: self.send_text(s, "Saved!"))

    flow = ReplyingFlow(messenger, sessions, api)
    session = await _at_confirm(flow)
    messenger.send_buttons.reset_mock()

    await flow.handle(button("confirm"), session)

    assert messenger.send_text.await_args.args[1] == "Saved!"
    messenger.send_buttons.assert_not_awaited()


@pytest.mark.asyncio
async def test_checkpointed_advance_saves_before_the_next_prompt(sessions, messenger, api, store):
    class RecordingFlow(DemoFlow):
        async def _handle_name(self, message, session):
            return StepResult.advance({"name": message.text}, checkpoint=True)

    flow = RecordingFlow(messenger, sessions, api)
    session = new_session()
    await flow.start(session)
    messenger.send_text.side_effect = WhatsAppAPIError("timeout")

    with pytest.raises(WhatsAppAPIError):
        await flow.handle(text("Rahul"), session)

    saved = await store.load(PHONE)
    assert saved.current_step == "ask_amount"
    assert saved.temp_data == {"name": "Rahul"}


@pytest.mark.asyncio
async def test_complete_outside_final_step_is_rejected(sessions, messenger, api):
    class EagerFlow(DemoFlow):
        async def _handle_name(self, message, session):
            return StepResult.complete()

    flow = EagerFlow(messenger, sessions, api)
    session = new_session()
    await flow.start(session)

    with pytest.raises(InvalidTransitionError):
        await flow.handle(text("Rahul"), session)


def test_missing_step_handler_is_a_definition_error(sessions, messenger, api):
    class IncompleteFlow(DemoFlow):
        def step_table(self):
            table = super().step_table()
            del table[DemoStep.CONFIRM]
            return table

    with pytest.raises(FlowDefinitionError):
        IncompleteFlow(messenger, sessions, api)


def test_next_outside_step_set_is_a_definition_error(sessions, messenger, api):
    class Elsewhere(str, Enum):
        NOWHERE = "nowhere"

    class LeakyFlow(DemoFlow):
        def step_table(self):
            table = super().step_table()
            table[DemoStep.ASK_NAME] = StepSpec(self._handle_name, self._ask("Name?"), TEXT, next=Elsewhere.NOWHERE)
            return table

    with pytest.raises(FlowDefinitionError):
        LeakyFlow(messenger, sessions, api)


def test_edit_target_outside_step_set_is_a_definition_error(sessions, messenger, api):
    class BadEditFlow(DemoFlow):
        edit_targets = {"edit_name": DemoStep.DONE}

    with pytest.raises(FlowDefinitionError):
        BadEditFlow(messenger, sessions, api)
