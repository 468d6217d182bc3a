from abc import ABC, abstractmethod
from enum import Enum
from typing import Awaitable, Dict, List, Optional, Tuple, Type
import logging

from pydantic import BaseModel

from panikkar.models.flow_type import FlowType
from panikkar.models.incoming import IncomingMessage
from panikkar.models.session import ConversationSession
from panikkar.services.conversation import messages
from panikkar.services.external import PanikkarApi, PanikkarApiError
from panikkar.services.session import SessionManager, EDIT_RETURN_KEY
from panikkar.services.whatsapp import WhatsAppClient
from panikkar.shared.masking import mask_phone
from .step import FlowDefinitionError, InvalidTransitionError, Outcome, StepResult, StepSpec

SKIP_PHRASES = ("skip", "no", "none", "-")


class BaseFlow(ABC):
    """
    Base class of every conversation flow.

    Responsibility: run a flow's step table. Subclasses declare their steps
    (a str Enum), the first/terminal/confirmation steps, optional edit
    targets and a step table; this class dispatches each message to exactly
    one step handler and applies the StepResult it returns.

    Dispatch order for one message:
        1. unknown or stale step            -> start() again
        2. terminal step                    -> handle_complete()
        3. edit selection at confirmation   -> jump to the edited step
        4. skip signal on an optional step  -> store the default, go to skip target
        5. wrong message kind               -> error + same prompt
        6. step handler                     -> StepResult
    """

    flow_type: FlowType
    steps: Type[Enum]
    first_step: Enum
    terminal_step: Optional[Enum] = None
    confirm_step: Optional[Enum] = None
    edit_targets: Dict[str, Enum] = {}
    draft_model: Optional[Type[BaseModel]] = None

    def __init__(self, messenger: WhatsAppClient, sessions: SessionManager, api: PanikkarApi):
        self.messenger = messenger
        self.sessions = sessions
        self.temp = sessions.temp
        self.api = api
        self.engine = None  # FlowRouter, set when the flow is registered
        self.logger = logging.getLogger(self.__class__.__name__)
        self._table = self.step_table()
        self._check_table()

    @abstractmethod
    def step_table(self) -> Dict[Enum, StepSpec]:
        """Step -> StepSpec for every step except the terminal one."""

    @property
    def tag(self) -> str:
        return self.flow_type.name

    def _check_table(self):
        declared = set(self.steps)
        expected = declared - {self.terminal_step}

        missing = expected - set(self._table)
        if missing:
            raise FlowDefinitionError(f"{self.tag}: no handler for steps {sorted(s.value for s in missing)}")
        unknown = set(self._table) - expected
        if unknown:
            raise FlowDefinitionError(f"{self.tag}: handlers for undeclared steps {sorted(str(s) for s in unknown)}")
        if self.first_step not in expected:
            raise FlowDefinitionError(f"{self.tag}: first step must be a non-terminal declared step")

        for step, spec in self._table.items():
            for target in (spec.next, spec.skip_next):
                if target is not None and target not in declared:
                    raise FlowDefinitionError(f"{self.tag}: {step.value} points to unknown step {target}")

        if self.edit_targets:
            if self.confirm_step not in expected:
                raise FlowDefinitionError(f"{self.tag}: edit targets need a confirmation step")
            for action, target in self.edit_targets.items():
                if target not in expected:
                    raise FlowDefinitionError(f"{self.tag}: edit '{action}' targets unknown step {target}")

    # ==================== ENGINE CONTRACT ====================

    def current_step(self, session: ConversationSession) -> Optional[Enum]:
        """The session's step as a member of this flow's step set, or None if stale."""
        if session.flow_type != self.flow_type.value:
            return None
        try:
            return self.steps(session.current_step)
        except ValueError:
            return None

    def entry_step(self, session: ConversationSession, **entry) -> Enum:
        """Step a fresh run begins at. Flows with entry arguments override this."""
        return self.first_step

    async def start(self, session: ConversationSession, **entry) -> None:
        """Fresh run: temp data cleared, first step set, first prompt sent."""
        self.temp.clear(session)
        step = self.entry_step(session, **entry)
        self.sessions.set_flow_step(session, self.flow_type, step)
        self.logger.info(f"[{self.tag}] Started at '{step.value}' for {mask_phone(session.phone)}")
        await self._guarded(session, self._prompt_step(session, step))

    async def handle(self, message: IncomingMessage, session: ConversationSession) -> None:
        step = self.current_step(session)
        if step is None:
            self.logger.warning(f"[{self.tag}] Unknown step '{session.current_step}', restarting flow")
            await self.start(session)
            return

        self.log_step(step, session, message)
        await self._guarded(session, self._dispatch(message, session, step))

    async def prompt_current_step(self, session: ConversationSession) -> None:
        """Sends the current step's question again without consuming input."""
        step = self.current_step(session)
        if step is None:
            await self.start(session)
            return
        await self._guarded(session, self._prompt_step(session, step))

    async def handle_timeout(self, session: ConversationSession) -> None:
        """Releases resources held by an abandoned run. Runs before the session goes idle."""

    async def handle_complete(self, message: IncomingMessage, session: ConversationSession) -> None:
        """Input received after the run completed. Never repeats the terminal side effect."""
        await self.engine.go_to_main_menu(session)

    async def prompt_complete(self, session: ConversationSession) -> None:
        await self.send_buttons(session, "✅ All done! What would you like to do next?", [messages.MENU_BUTTON])

    def before_edit(self, session: ConversationSession, target: Enum) -> None:
        """Hook run before jumping from the confirmation step to an edited step."""

    # ==================== DISPATCH ====================

    async def _dispatch(self, message: IncomingMessage, session: ConversationSession, step: Enum) -> None:
        if step == self.terminal_step:
            await self.handle_complete(message, session)
            return

        spec = self._table[step]

        if step == self.confirm_step and message.action in self.edit_targets:
            await self._jump_to_edit(session, message.action)
            return

        if spec.optional and self.is_skip(message, spec):
            updates = {spec.skip_field: spec.skip_default} if spec.skip_field else {}
            self.logger.debug(f"[{self.tag}] Step '{step.value}' skipped")
            await self._apply(session, step, spec, StepResult.skip(updates))
            return

        if message.kind not in spec.expects:
            await self._apply(session, step, spec, StepResult.invalid(messages.expected_input_error(spec.expects)))
            return

        result = await spec.handler(message, session)
        await self._apply(session, step, spec, result)

    async def _apply(self, session: ConversationSession, step: Enum, spec: StepSpec, result: StepResult) -> None:
        outcome = result.outcome

        if outcome == Outcome.INVALID:
            await self.handle_invalid_input(session, result.error)

        elif outcome in (Outcome.ADVANCE, Outcome.SKIP):
            self.temp.merge(session, result.updates)
            target = spec.next if outcome == Outcome.ADVANCE else spec.skip_target
            await self._move(session, step, spec, target, checkpoint=result.checkpoint)

        elif outcome == Outcome.STAY:
            self.temp.merge(session, result.updates)
            await self._prompt_step(session, step)

        elif outcome == Outcome.COMPLETE:
            if self.terminal_step is None or spec.next != self.terminal_step:
                raise InvalidTransitionError(f"{self.tag}: '{step.value}' cannot complete the flow")
            self.temp.clear(session)
            self.sessions.set_step(session, self.terminal_step)
            await self.sessions.checkpoint(session)
            self.logger.info(f"[{self.tag}] Completed for {mask_phone(session.phone)}")
            await (result.reply or self.prompt_complete)(session)

        elif outcome == Outcome.SWITCH:
            await self.engine.start_flow(session, result.flow, **result.entry)

        elif outcome == Outcome.ABORT:
            self.sessions.reset_to_main_menu(session)
            self.logger.info(f"[{self.tag}] Aborted at '{step.value}' for {mask_phone(session.phone)}")

        # Outcome.HANDLED: the handler already replied

    async def _move(
        self,
        session: ConversationSession,
        step: Enum,
        spec: StepSpec,
        target: Optional[Enum],
        checkpoint: bool = False,
    ) -> None:
        returning = self.temp.remove(session, EDIT_RETURN_KEY) is not None
        if returning:
            target = self.confirm_step

        allowed = {spec.next, spec.skip_target}
        if returning:
            allowed.add(self.confirm_step)
        if target is None or target not in allowed or target == self.terminal_step:
            raise InvalidTransitionError(f"{self.tag}: '{step.value}' cannot move to {target}")

        self.sessions.set_step(session, target)
        if checkpoint:
            await self.sessions.checkpoint(session)
        await self._prompt_step(session, target)

    async def _jump_to_edit(self, session: ConversationSession, action: str) -> None:
        target = self.edit_targets[action]
        self.before_edit(session, target)
        self.temp.set(session, EDIT_RETURN_KEY, self.confirm_step.value)
        self.sessions.set_step(session, target)
        self.logger.info(f"[{self.tag}] Editing '{target.value}'")
        await self._prompt_step(session, target)

    async def _prompt_step(self, session: ConversationSession, step: Enum) -> None:
        if step == self.terminal_step:
            await self.prompt_complete(session)
            return
        await self._table[step].prompt(session)

    async def _guarded(self, session: ConversationSession, action: Awaitable) -> None:
        try:
            await action
        except PanikkarApiError as exc:
            await self._report_service_failure(session, exc)

    async def _report_service_failure(self, session: ConversationSession, exc: Exception) -> None:
        self.logger.error(
            f"[{self.tag}] Service failure at '{session.current_step}' for {mask_phone(session.phone)}: {exc}"
        )
        await self.send_buttons(session, messages.SERVICE_FAILURE, messages.failure_buttons())

    # ==================== SHARED UTILITIES ====================

    def is_skip(self, message: IncomingMessage, spec: StepSpec) -> bool:
        if message.action is not None:
            return message.action == "skip" or message.action in spec.skip_ids
        return message.normalized_text in SKIP_PHRASES

    async def handle_invalid_input(self, session: ConversationSession, error: Optional[str] = None) -> None:
        if error:
            await self.messenger.send_text(session.phone, f"❌ {error}")
        step = self.current_step(session)
        if step is not None:
            await self._prompt_step(session, step)

    def draft(self, session: ConversationSession) -> BaseModel:
        """The run's temp data read through the flow's draft model."""
        return self.draft_model.model_validate(self.temp.snapshot(session))

    def log_step(self, step: Enum, session: ConversationSession, message: IncomingMessage):
        """Consistent step logging across flows."""
        self.logger.info(f"[{self.tag}] Step '{step.value}' - {mask_phone(session.phone)} ({message.kind.value})")
        if message.text:
            self.logger.debug(f"[{self.tag}] Message: '{message.text}'")

    async def send_text(self, session: ConversationSession, text: str):
        return await self.messenger.send_text(session.phone, text)

    async def send_buttons(
        self,
        session: ConversationSession,
        text: str,
        buttons: List[Tuple[str, str]],
        header: Optional[str] = None,
    ):
        return await self.messenger.send_buttons(session.phone, text, buttons, header, messages.FOOTER)

    async def send_list(
        self,
        session: ConversationSession,
        text: str,
        button_text: str,
        sections: List[Dict],
        header: Optional[str] = None,
    ):
        return await self.messenger.send_list(session.phone, text, button_text, sections, header, messages.FOOTER)
