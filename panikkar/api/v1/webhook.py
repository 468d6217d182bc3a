from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import PlainTextResponse
from panikkar.core.config import get_settings
from panikkar.models.incoming import IncomingMessage
from panikkar.models.message import Status, Value, WebhookPayload
from panikkar.services.conversation.conversation_manager import ConversationManager
from panikkar.services.session import SessionStoreError
from panikkar.services.whatsapp import WhatsAppAPIError
from panikkar.shared.masking import mask_phone
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook")
settings = get_settings()

# Global conversation manager shared by every request
conversation_manager = ConversationManager()

# ============================================================================
# ENDPOINTS
# ============================================================================

@router.get("")
async def verify_webhook(
    hub_mode: str = Query("", alias="hub.mode"),
    hub_challenge: str = Query("", alias="hub.challenge"),
    hub_verify_token: str = Query("", alias="hub.verify_token"),
):
    """Cloud API webhook verification handshake."""
    if hub_mode == "subscribe" and settings.VERIFY_TOKEN and hub_verify_token == settings.VERIFY_TOKEN:
        return PlainTextResponse(content=hub_challenge, status_code=200)

    logger.warning("Webhook verification failed")
    raise HTTPException(status_code=403, detail="Verification failed")


@router.post("")
async def receive_update(payload: WebhookPayload):
    """
    Receives WhatsApp updates.
    Responsibility: hand each message to the conversation manager and map
    collaborator failures to status codes that make Meta retry delivery.
    """
    processed = 0
    duplicates = 0
    statuses = 0

    try:
        for value in _values(payload):
            statuses += _handle_status_updates(value.statuses)

            profile_name = _profile_name(value)
            for message in value.messages:
                incoming = IncomingMessage.from_webhook(message, profile_name)
                if await conversation_manager.process_message(incoming):
                    processed += 1
                else:
                    duplicates += 1

    except WhatsAppAPIError as exc:
        logger.error(f"WhatsApp API rejected a reply: {exc}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="WhatsApp API rejected the message"
        ) from exc
    except SessionStoreError as exc:
        logger.error(f"Session store unavailable: {exc}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session store unavailable"
        ) from exc
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error processing webhook: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )

    if not (processed or duplicates or statuses):
        return {"status": "ignored", "reason": "no_valid_message"}

    return {"status": "processed", "processed": processed, "duplicates": duplicates, "statuses": statuses}

# ============================================================================
# PRIVATE HELPERS
# ============================================================================

def _values(payload: WebhookPayload) -> List[Value]:
    return [change.value for entry in payload.entry for change in entry.changes]


def _profile_name(value: Value) -> Optional[str]:
    for contact in value.contacts:
        if contact.profile and contact.profile.get("name"):
            return contact.profile["name"]
    return None


def _handle_status_updates(statuses: List[Status]) -> int:
    """Delivery receipts are only logged."""
    for status_update in statuses:
        logger.debug(
            f"Status {status_update.status} for {status_update.id} "
            f"({mask_phone(status_update.recipient_id or '')})"
        )
    return len(statuses)
