from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

class UserStatus(BaseModel):
    """Last broadcast foreground app of one user. One row per user_id."""
    user_id: str
    current_app: Optional[str] = None
    friendly_name: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")
