from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    BACKEND_URL: str = Field(default="http://localhost:54321", description="Base URL of the hosted backend (REST, auth, realtime)")
    BACKEND_ANON_KEY: str = Field(default="", description="Public API key sent with every backend request")
    DATABASE_URL: str = Field(default="sqlite:///./peep.db", description="Database connection string used by the push relay")
    BROADCAST_INTERVAL_SECONDS: float = Field(default=30.0, description="How often the foreground app is sampled while the app is visible")
    TOAST_DURATION_SECONDS: float = Field(default=3.0, description="How long a toast stays on screen before auto-dismissing")
    HTTP_TIMEOUT_SECONDS: float = Field(default=10.0, description="Timeout for backend HTTP calls")
    REALTIME_HEARTBEAT_SECONDS: float = Field(default=30.0, description="Heartbeat period on the realtime socket")
    REALTIME_RETRY_SECONDS: float = Field(default=5.0, description="Pause before a dropped realtime feed is rejoined")
    TOKEN_REFRESH_MARGIN_SECONDS: float = Field(default=60.0, description="Refresh the access token when it expires within this many seconds")
    SESSION_FILE: Optional[str] = Field(default=None, description="Where the signed-in session is cached between launches; unset keeps it in memory")
    ALLOWED_ORIGINS: List[str] = Field(default=["*"], description="CORS origins accepted by the push relay")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
