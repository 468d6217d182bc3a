from .buttons import WhatsAppButtons
from .lists import WhatsAppLists

__all__ = ["WhatsAppButtons", "WhatsAppLists"]
