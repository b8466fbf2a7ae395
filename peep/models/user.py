from sqlalchemy import Column, String, DateTime, Integer, Uuid
from datetime import datetime
import uuid
from peep.db.session import Base

class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Unique index settles racing sign-ups; the client-side check is only a hint
    username = Column(String, unique=True, nullable=False)
    avatar_url = Column(String, nullable=True)
    push_token = Column(String, nullable=True)
    daily_peeps_remaining = Column(Integer, default=10, nullable=False)
    last_peep_reset = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Profile id={self.id} username={self.username}>"
