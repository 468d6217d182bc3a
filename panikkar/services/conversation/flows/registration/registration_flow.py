from enum import Enum

from panikkar.models.flow_type import FlowType
from panikkar.models.incoming import IncomingMessage, MessageKind
from panikkar.models.session import ConversationSession
from panikkar.schemas.registration_schema import RegistrationDraft
from panikkar.services.conversation import messages
from ..base_flow import BaseFlow
from ..step import SELECTION, TEXT, StepResult, StepSpec
from .validators import RegistrationValidators


class RegistrationStep(str, Enum):
    ASK_NAME = "ask_name"
    ASK_LOCATION = "ask_location"
    CONFIRM = "confirm"
    COMPLETE = "complete"


ALREADY_REGISTERED = (
    "✅ *You're already registered!*\n\n"
    "What would you like to do?"
)


class RegistrationFlow(BaseFlow):
    """
    Responsibility: create the user's account.

    name -> location (optional) -> confirm -> complete
    """

    flow_type = FlowType.REGISTRATION
    steps = RegistrationStep
    first_step = RegistrationStep.ASK_NAME
    terminal_step = RegistrationStep.COMPLETE
    confirm_step = RegistrationStep.CONFIRM
    edit_targets = {
        "edit_name": RegistrationStep.ASK_NAME,
        "edit_location": RegistrationStep.ASK_LOCATION,
    }
    draft_model = RegistrationDraft

    def step_table(self):
        return {
            RegistrationStep.ASK_NAME: StepSpec(
                handler=self._handle_name,
                prompt=self._prompt_name,
                expects=TEXT,
                next=RegistrationStep.ASK_LOCATION,
            ),
            RegistrationStep.ASK_LOCATION: StepSpec(
                handler=self._handle_location,
                prompt=self._prompt_location,
                expects=(MessageKind.LOCATION,),
                next=RegistrationStep.CONFIRM,
                optional=True,
                skip_field="latitude",
                skip_ids=("skip", "skip_location"),
            ),
            RegistrationStep.CONFIRM: StepSpec(
                handler=self._handle_confirm,
                prompt=self._prompt_confirm,
                expects=SELECTION,
                next=RegistrationStep.COMPLETE,
            ),
        }

    async def start(self, session: ConversationSession, **entry) -> None:
        if session.is_registered:
            self.logger.info(f"[{self.tag}] User {session.user_id} already registered")
            self.sessions.reset_to_main_menu(session)
            await self.send_buttons(
                session,
                ALREADY_REGISTERED,
                [("job_post", "📋 Post a Job"), ("browse_jobs", "🔍 Find Jobs"), messages.MENU_BUTTON],
            )
            return
        await super().start(session, **entry)

    def before_edit(self, session: ConversationSession, target: Enum) -> None:
        # a skip while editing must not leave the old address behind
        if target == RegistrationStep.ASK_LOCATION:
            self.temp.merge(session, {"latitude": None, "longitude": None, "address": None})

    # ==================== HANDLERS ====================

    async def _handle_name(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        is_valid, error_msg, name = RegistrationValidators.validate_name(message.text)
        if not is_valid:
            return StepResult.invalid(error_msg)
        return StepResult.advance({"name": name})

    async def _handle_location(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        is_valid, error_msg, location = RegistrationValidators.validate_location(message)
        if not is_valid:
            return StepResult.invalid(error_msg)
        return StepResult.advance(location)

    async def _handle_confirm(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        if message.action != "confirm_registration":
            return StepResult.invalid("Please tap Confirm or choose what to edit.")

        draft = self.draft(session)
        user = await self.api.register_user({
            "phone": session.phone,
            "name": draft.name,
            "latitude": draft.latitude,
            "longitude": draft.longitude,
            "address": draft.address,
        })
        self.sessions.link_user(session, user["id"])
        self.logger.info(f"[{self.tag}] User {user['id']} registered")
        return StepResult.complete(reply=lambda s: self._send_welcome(s, draft.name))

    async def _send_welcome(self, session: ConversationSession, name: str) -> None:
        await self.send_buttons(
            session,
            f"🎉 *Welcome, {name}!*\n\n"
            "Your account is ready. You can now post jobs or find work.\n"
            "രജിസ്ട്രേഷൻ പൂർത്തിയായി!",
            [("job_post", "📋 Post a Job"), ("worker_register", "👷 Become Worker"), messages.MENU_BUTTON],
        )

    # ==================== PROMPTS ====================

    async def _prompt_name(self, session: ConversationSession) -> None:
        await self.send_text(
            session,
            "📝 *Registration*\n\n"
            "What's your name?\n"
            "നിങ്ങളുടെ പേര് എന്താണ്?"
        )

    async def _prompt_location(self, session: ConversationSession) -> None:
        await self.messenger.request_location(
            session.phone,
            "📍 Share your location so we can show you jobs and workers nearby.",
        )
        await self.send_buttons(session, "Prefer not to share it now?", [("skip_location", "⏭️ Skip")])

    async def _prompt_confirm(self, session: ConversationSession) -> None:
        draft = self.draft(session)
        location = draft.address or ("📍 Shared" if draft.has_location else "Not shared")
        await self.send_buttons(
            session,
            "✅ *Please confirm*\n\n"
            f"👤 Name: *{draft.name}*\n"
            f"📍 Location: {location}",
            [
                ("confirm_registration", "✅ Confirm"),
                ("edit_name", "✏️ Edit Name"),
                ("edit_location", "📍 Edit Location"),
            ],
        )
