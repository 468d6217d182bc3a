import logging
from typing import Optional

from panikkar.models.incoming import IncomingMessage
from panikkar.models.session import ConversationSession
from panikkar.services.conversation import messages
from panikkar.services.conversation.flow_router import FlowRouter
from panikkar.services.session import SessionManager
from panikkar.services.whatsapp import WhatsAppClient
from panikkar.shared.masking import mask_phone

logger = logging.getLogger(__name__)

MENU = "menu"
CANCEL = "cancel"
RETRY = "retry"
HELP = "help"


class NavigationInterceptor:
    """
    Single responsibility: cross-flow commands (menu, cancel, retry, help),
    checked before any flow sees the message.

    intercept() never raises. An internal error is logged and reported as
    "not handled" so normal dispatch still runs.
    """

    MENU_KEYWORDS = ("menu", "home", "start", "0", "hi", "hello", "main", "reset")
    CANCEL_KEYWORDS = ("cancel", "exit", "quit", "stop", "end")
    RETRY_KEYWORDS = ("retry",)
    HELP_KEYWORDS = ("help", "?")

    SELECTION_COMMANDS = {
        "main_menu": MENU,
        "menu": MENU,
        "cancel": CANCEL,
        "retry": RETRY,
        "help": HELP,
    }

    def __init__(self, router: FlowRouter, sessions: SessionManager, messenger: WhatsAppClient):
        self.router = router
        self.sessions = sessions
        self.messenger = messenger

    def detect(self, message: IncomingMessage, session: ConversationSession) -> Optional[str]:
        """Command carried by the message, or None."""
        if message.is_selection:
            command = self.SELECTION_COMMANDS.get(message.action)
        else:
            text = message.normalized_text
            if text in self.MENU_KEYWORDS:
                command = MENU
            elif text in self.CANCEL_KEYWORDS:
                command = CANCEL
            elif text in self.RETRY_KEYWORDS:
                command = RETRY
            elif text in self.HELP_KEYWORDS:
                command = HELP
            else:
                command = None

        # cancel only means something inside a flow
        if command == CANCEL and self.sessions.is_idle(session):
            return None
        return command

    async def intercept(self, message: IncomingMessage, session: ConversationSession) -> bool:
        try:
            command = self.detect(message, session)
            if command is None:
                return False

            logger.info(f"[NAV] '{command}' from {mask_phone(session.phone)} at {session.flow_type}/{session.current_step}")

            if command == MENU:
                await self.router.go_to_main_menu(session)
            elif command == CANCEL:
                await self._cancel(session)
            elif command == RETRY:
                await self._retry(session)
            else:
                await self._help(session)
            return True

        except Exception as e:
            logger.error(f"[NAV] Navigation command failed, falling back to flow dispatch: {e}", exc_info=True)
            return False

    async def _cancel(self, session: ConversationSession) -> None:
        self.sessions.reset_to_main_menu(session)
        await self.messenger.send_buttons(
            session.phone, messages.CANCELLED, [messages.MENU_BUTTON], None, messages.FOOTER
        )

    async def _retry(self, session: ConversationSession) -> None:
        await self.router.resolve(session.flow_type).prompt_current_step(session)

    async def _help(self, session: ConversationSession) -> None:
        buttons = [messages.MENU_BUTTON]
        if not self.sessions.is_idle(session):
            buttons = [messages.RETRY_BUTTON, messages.MENU_BUTTON]
        await self.messenger.send_buttons(session.phone, messages.HELP, buttons, None, messages.FOOTER)
