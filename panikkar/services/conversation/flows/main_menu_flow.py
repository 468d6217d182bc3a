from enum import Enum
from typing import Dict, List, Optional

from panikkar.models.flow_type import FlowType
from panikkar.models.incoming import IncomingMessage
from panikkar.models.session import ConversationSession
from panikkar.services.conversation import messages
from .base_flow import BaseFlow
from .step import ANY_INPUT, TEXT_OR_SELECTION, StepResult, StepSpec


class MainMenuStep(str, Enum):
    IDLE = "idle"
    AWAITING_SELECTION = "awaiting_selection"


MENU_OPTIONS: Dict[str, FlowType] = {
    "job_post": FlowType.JOB_POST,
    "browse_jobs": FlowType.JOB_APPLICATION,
    "worker_register": FlowType.WORKER_REGISTRATION,
    "register": FlowType.REGISTRATION,
    "review_applicants": FlowType.JOB_SELECTION,
    "my_jobs": FlowType.JOB_EXECUTION,
}

# Typed shortcuts for users who answer the menu with text
TEXT_SHORTCUTS: Dict[str, str] = {
    "1": "job_post",
    "2": "browse_jobs",
    "3": "worker_register",
    "4": "register",
    "post": "job_post",
    "post job": "job_post",
    "find": "browse_jobs",
    "find job": "browse_jobs",
    "find jobs": "browse_jobs",
    "browse": "browse_jobs",
    "jobs": "browse_jobs",
    "job": "browse_jobs",
    "worker": "worker_register",
    "register": "register",
    "applicants": "review_applicants",
    "my job": "my_jobs",
    "about": "about",
}

ABOUT = (
    f"🤝 *{messages.BRAND}*\n\n"
    "Find trusted local workers for everyday jobs, or find work near you.\n\n"
    "• Post a job in under two minutes\n"
    "• Workers nearby get notified and apply\n"
    "• Choose the worker you like\n\n"
    "നിങ്ങളുടെ നാട്ടിലെ പണിക്കാരെ കണ്ടെത്താം."
)


class MainMenuFlow(BaseFlow):
    """
    Responsibility: the idle menu.
    Turns a menu choice into the start of another flow.
    """

    flow_type = FlowType.MAIN_MENU
    steps = MainMenuStep
    first_step = MainMenuStep.AWAITING_SELECTION

    def step_table(self):
        return {
            MainMenuStep.IDLE: StepSpec(
                handler=self._handle_idle,
                prompt=self._prompt_menu,
                expects=ANY_INPUT,
                next=MainMenuStep.AWAITING_SELECTION,
            ),
            MainMenuStep.AWAITING_SELECTION: StepSpec(
                handler=self._handle_selection,
                prompt=self._prompt_menu,
                expects=TEXT_OR_SELECTION,
            ),
        }

    # ==================== HANDLERS ====================

    async def _handle_idle(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        """First message after a reset: a recognised option starts right away, anything else shows the menu."""
        option = self._option_for(message)
        if option is None:
            return StepResult.advance()
        return await self._choose(option, session)

    async def _handle_selection(self, message: IncomingMessage, session: ConversationSession) -> StepResult:
        option = self._option_for(message)
        if option is None:
            return StepResult.invalid("Please pick an option from the menu.")
        return await self._choose(option, session)

    async def _choose(self, option: str, session: ConversationSession) -> StepResult:
        if option == "about":
            await self.send_buttons(session, ABOUT, [messages.MENU_BUTTON])
            return StepResult.handled()

        self.logger.info(f"[{self.tag}] Menu option '{option}'")
        return StepResult.switch(MENU_OPTIONS[option])

    def _option_for(self, message: IncomingMessage) -> Optional[str]:
        if message.is_selection:
            action = message.action
            return action if action in MENU_OPTIONS or action == "about" else None
        return TEXT_SHORTCUTS.get(message.normalized_text)

    # ==================== PROMPTS ====================

    async def _prompt_menu(self, session: ConversationSession) -> None:
        await self.send_list(
            session,
            "👋 *Welcome to Njaanum Panikkar!*\n\n"
            "What would you like to do today?\n"
            "ഇന്ന് എന്ത് ചെയ്യണം?",
            "📋 Menu",
            [{"title": "Jobs", "rows": self._menu_rows(session)}],
            header=messages.BRAND,
        )

    def _menu_rows(self, session: ConversationSession) -> List[Dict]:
        rows = [
            {"id": "job_post", "title": "📋 Post a Job", "description": "Find a worker for any task"},
            {"id": "browse_jobs", "title": "🔍 Find Jobs", "description": "Browse open jobs near you"},
            {"id": "worker_register", "title": "👷 Become a Worker", "description": "Get job alerts and earn"},
        ]
        if session.is_registered:
            rows += [
                {"id": "review_applicants", "title": "👥 My Applicants", "description": "Choose a worker for your job"},
                {"id": "my_jobs", "title": "🛠️ My Active Job", "description": "Report arrival or finish work"},
            ]
        else:
            rows.append({"id": "register", "title": "📝 Register", "description": "Create your free account"})
        rows.append({"id": "about", "title": "ℹ️ About", "description": f"How {messages.BRAND} works"})
        return rows
