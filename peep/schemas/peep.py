from pydantic import BaseModel, ConfigDict, model_validator
from typing import Optional
from datetime import datetime

class PeepCreate(BaseModel):
    from_user_id: str
    to_user_id: str
    detected_app: Optional[str] = None
    friendly_name: str

class PeepEvent(PeepCreate):
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")

class PeepNotificationRequest(BaseModel):
    """Body of the push relay call.

    Accepts the flat payload or a database webhook envelope
    ``{"type": "INSERT", "table": "peeps", "record": {...}}``.
    """
    from_user_id: str
    to_user_id: str
    friendly_name: Optional[str] = None

    @model_validator(mode='before')
    @classmethod
    def unwrap_webhook(cls, data):
        if isinstance(data, dict) and isinstance(data.get("record"), dict):
            return data["record"]
        return data

class PeepNotificationResponse(BaseModel):
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
