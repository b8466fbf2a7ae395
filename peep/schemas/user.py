from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
import re

from peep.schemas.status import UserStatus

class Profile(BaseModel):
    id: str
    username: str
    avatar_url: Optional[str] = None
    push_token: Optional[str] = None
    daily_peeps_remaining: int = 0
    last_peep_reset: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")

class FriendWithStatus(Profile):
    status: Optional[UserStatus] = None

class FriendRequest(BaseModel):
    id: str
    user: Profile
    created_at: Optional[datetime] = None

    model_config = ConfigDict(extra="ignore")

class Friendship(BaseModel):
    id: str
    user_id: str
    friend_id: str
    status: str = "pending"
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")

class SignUpRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=6)
    username: str = Field(..., min_length=3, max_length=30)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        if not re.match(r'^[a-zA-Z0-9_]+$', v):
            raise ValueError('Username can only contain letters, numbers, and underscores')
        return v.lower()

class AuthSession(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    user_id: str
    expires_at: Optional[int] = None
