from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field
from panikkar.core.timezone_helper import TimezoneHelper
from panikkar.models.flow_type import FlowType


class ConversationSession(BaseModel):
    """
    Persisted conversation state of one phone number.

    flow_type is kept as the raw stored string so a session written by an
    older deployment still loads; the flow router resolves it.
    """

    phone: str
    flow_type: str = FlowType.MAIN_MENU.value
    current_step: str = "idle"
    temp_data: Dict[str, Any] = Field(default_factory=dict)
    user_id: Optional[int] = None
    last_activity_at: datetime = Field(default_factory=TimezoneHelper.now)
    last_message_id: Optional[str] = None

    @property
    def is_registered(self) -> bool:
        return self.user_id is not None
