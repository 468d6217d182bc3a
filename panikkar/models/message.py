from pydantic import BaseModel, Field
from typing import List, Dict, Any, Optional

class InteractiveButtonReply(BaseModel):
    id: str
    title: str

class InteractiveListReply(BaseModel):
    id: str
    title: str
    description: Optional[str] = None

class Interactive(BaseModel):
    type: str  # "button_reply" or "list_reply"
    button_reply: Optional[InteractiveButtonReply] = None
    list_reply: Optional[InteractiveListReply] = None

class TemplateButton(BaseModel):
    """Quick-reply button of a template message."""
    payload: Optional[str] = None
    text: Optional[str] = None

class SharedLocation(BaseModel):
    latitude: float
    longitude: float
    name: Optional[str] = None
    address: Optional[str] = None

class Media(BaseModel):
    id: str
    mime_type: Optional[str] = None
    caption: Optional[str] = None
    filename: Optional[str] = None

class Message(BaseModel):
    from_: str = Field(alias="from")      # "from" is a reserved word
    id: str
    timestamp: Optional[str] = None
    type: str
    text: Optional[Dict[str, Any]] = None          # text messages
    interactive: Optional[Interactive] = None      # button / list replies
    button: Optional[TemplateButton] = None        # template quick replies
    location: Optional[SharedLocation] = None
    image: Optional[Media] = None
    document: Optional[Media] = None

class Contact(BaseModel):
    wa_id: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None

class Status(BaseModel):
    id: str
    status: str
    timestamp: str
    recipient_id: Optional[str] = None

class Value(BaseModel):
    messages: List[Message] = Field(default_factory=list)
    contacts: List[Contact] = Field(default_factory=list)
    statuses: List[Status] = Field(default_factory=list)

class Change(BaseModel):
    value: Value

class WhatsAppEntry(BaseModel):
    changes: List[Change]

class WebhookPayload(BaseModel):
    entry: List[WhatsAppEntry] = Field(default_factory=list)
