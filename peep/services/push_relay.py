import uuid
from typing import Optional

from sqlalchemy.orm import Session

from peep.core.firebase import firebase_service
from peep.models.user import Profile
from peep.schemas.peep import PeepNotificationRequest, PeepNotificationResponse
from peep.services.peep_notifier import UNKNOWN_SENDER
from peep.utils.logger import safe_print

PEEP_TITLE = "👀 You were peeped!"
DEFAULT_ACTIVITY = "using your phone"


def _get_profile(db: Session, user_id: str) -> Optional[Profile]:
    try:
        key = uuid.UUID(str(user_id))
    except ValueError:
        return None
    return db.query(Profile).filter(Profile.id == key).first()


def build_peep_body(peeper_name: Optional[str], friendly_name: Optional[str]) -> str:
    return f"{peeper_name or UNKNOWN_SENDER} saw you {friendly_name or DEFAULT_ACTIVITY}"


def relay_peep_notification(db: Session, payload: PeepNotificationRequest) -> PeepNotificationResponse:
    """
    Push a "you were peeped" message to the receiver's device.

    Reads the peeper's username and the receiver's stored push token, then
    hands one message to FCM. No token means nothing is sent.
    """
    peeper = _get_profile(db, payload.from_user_id)
    target = _get_profile(db, payload.to_user_id)

    if target is None or not target.push_token:
        safe_print(f"Push relay: no push token for {payload.to_user_id}")
        return PeepNotificationResponse(success=False, error="No push token for target user")

    message_id = firebase_service.send_push_notification(
        token=target.push_token,
        title=PEEP_TITLE,
        body=build_peep_body(peeper.username if peeper else None, payload.friendly_name),
        data={"type": "peep", "from_user_id": payload.from_user_id},
    )
    safe_print(f"Push relay: sent peep notification to {payload.to_user_id} ({message_id})")
    return PeepNotificationResponse(success=True, message_id=message_id)
