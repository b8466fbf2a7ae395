from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from peep.db.session import get_db
from peep.schemas.peep import PeepNotificationRequest, PeepNotificationResponse
from peep.services.push_relay import relay_peep_notification
from peep.utils.logger import safe_print

router = APIRouter()

@router.post("/send-peep-notification", response_model=PeepNotificationResponse)
def send_peep_notification(
    payload: PeepNotificationRequest,
    db: Session = Depends(get_db)
):
    """
    Relay a peep to the receiver's device as a push notification
    """
    try:
        return relay_peep_notification(db, payload)
    except Exception as e:
        safe_print(f"Push relay error: {e}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(e)}
        )
