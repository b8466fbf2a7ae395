from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any, Literal

ChangeType = Literal["INSERT", "UPDATE", "DELETE"]

class ChangeEvent(BaseModel):
    """One row-level change delivered by the realtime change-feed."""
    type: ChangeType
    table: str
    schema_name: str = Field(default="public", alias="schema")
    record: Dict[str, Any] = Field(default_factory=dict)
    old_record: Dict[str, Any] = Field(default_factory=dict)
    commit_timestamp: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
