from sqlalchemy import Column, DateTime, Enum, ForeignKey, UniqueConstraint, Uuid
from peep.db.session import Base
from datetime import datetime
import uuid

class Friendship(Base):
    __tablename__ = "friendships"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", name="friendships_user_id_fkey"), nullable=False)
    friend_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", name="friendships_friend_id_fkey"), nullable=False)
    status = Column(Enum("pending", "accepted", name="friendship_status"), default="pending", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'friend_id', name='unique_friendship_pair'),
    )

    def __repr__(self):
        return f"<Friendship user_id={self.user_id} friend_id={self.friend_id} status={self.status}>"
