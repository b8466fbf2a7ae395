from peep.backend.base import Backend
from peep.core.errors import PeepError
from peep.utils.logger import log, log_error


class NotificationService:
    """Keeps the device push token on the user's profile for the push relay"""

    def __init__(self, backend: Backend):
        self.backend = backend

    async def save_push_token(self, user_id: str, token: str) -> bool:
        if not token:
            return False
        try:
            await self.backend.update_profile(user_id, push_token=token)
        except PeepError as e:
            log_error("Notifications", "Error saving push token", e)
            return False
        log("Notifications", "Push token saved to profile")
        return True

    async def clear_push_token(self, user_id: str) -> bool:
        try:
            await self.backend.update_profile(user_id, push_token=None)
        except PeepError as e:
            log_error("Notifications", "Error clearing push token", e)
            return False
        return True
