"""
Texts shared by the engine, the navigation commands and several flows.
Flow-specific prompts live next to each flow.
"""
from typing import Iterable, List, Tuple

from panikkar.models.incoming import MessageKind

BRAND = "Njaanum Panikkar"
FOOTER = "Njaanum Panikkar • നിങ്ങളുടെ പണിക്കാരൻ"

MENU_BUTTON = ("main_menu", "🏠 Menu")
RETRY_BUTTON = ("retry", "🔄 Try Again")
CANCEL_BUTTON = ("cancel", "❌ Cancel")

CANCELLED = (
    "❌ *Action Cancelled*\n\n"
    "Nothing was saved. You can start again whenever you want.\n"
    "റദ്ദാക്കി. എപ്പോൾ വേണമെങ്കിലും വീണ്ടും തുടങ്ങാം."
)

HELP = (
    "ℹ️ *Help*\n\n"
    "• Type *menu* to go to the main menu\n"
    "• Type *cancel* to stop what you are doing\n"
    "• Type *retry* to see the last question again\n"
    "• Type *skip* on optional questions\n\n"
    "സഹായം വേണോ? *menu* എന്ന് ടൈപ്പ് ചെയ്യുക."
)

SERVICE_FAILURE = (
    "⚠️ *Something went wrong*\n\n"
    "We couldn't complete that just now. Please try again.\n"
    "ക്ഷമിക്കണം, ഒരു പ്രശ്നം ഉണ്ടായി. വീണ്ടും ശ്രമിക്കുക."
)

WELCOME_BACK = (
    "👋 *Welcome back!*\n\n"
    "You were in the middle of *{flow}*. Let's continue where you left off.\n"
    "നിർത്തിയിടത്ത് നിന്ന് തുടരാം."
)

REGISTRATION_REQUIRED = (
    "📝 *Register First*\n\n"
    "You need a Njaanum Panikkar account for *{flow}*. It takes less than a minute.\n"
    "ആദ്യം രജിസ്റ്റർ ചെയ്യുക."
)

INPUT_HINTS = {
    MessageKind.TEXT: "type your answer",
    MessageKind.BUTTON: "tap one of the buttons",
    MessageKind.LIST: "pick an option from the list",
    MessageKind.LOCATION: "share your location (📎 → Location)",
    MessageKind.IMAGE: "send a photo",
    MessageKind.DOCUMENT: "send a document",
}


def expected_input_error(expects: Iterable[MessageKind]) -> str:
    """Error shown when the message shape does not fit the current step."""
    hints: List[str] = []
    for kind in expects:
        hint = INPUT_HINTS.get(kind)
        if hint and hint not in hints:
            hints.append(hint)
    return f"Please {' or '.join(hints)}." if hints else "Please answer the question below."


def failure_buttons() -> List[Tuple[str, str]]:
    return [RETRY_BUTTON, MENU_BUTTON]
