from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
from peep.db.session import Base
from datetime import datetime
import uuid

class Peep(Base):
    __tablename__ = "peeps"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    from_user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    to_user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    detected_app = Column(String, nullable=True)
    friendly_name = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
