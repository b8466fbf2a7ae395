from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
from peep.db.session import Base
from datetime import datetime

class UserStatus(Base):
    __tablename__ = "user_status"

    # user_id is the key: an upsert replaces the row, never adds a second one
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), primary_key=True)
    current_app = Column(String, nullable=True)
    friendly_name = Column(String, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
