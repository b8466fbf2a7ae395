from typing import List, Optional

from peep.backend.base import Backend
from peep.core.context import AppContext
from peep.core.errors import Conflict, NotFound, PermissionDenied, PeepError
from peep.core.sensor import ForegroundAppSensor
from peep.schemas.peep import PeepCreate
from peep.schemas.status import UserStatus
from peep.schemas.user import FriendWithStatus
from peep.utils.app_names import OFFLINE_LABEL
from peep.utils.logger import log, log_error


class PeepService:
    """Friend list operations and the peep action"""

    def __init__(self, backend: Backend, sensor: ForegroundAppSensor, context: AppContext):
        self.backend = backend
        self.sensor = sensor
        self.context = context

    async def peep(self, user_id: str, friend_id: str) -> str:
        """
        Record a peep of ``friend_id`` and return what they are doing.

        Raises PermissionDenied before touching the network when usage access
        is missing. The inserted row is what notifies the friend.
        """
        if not await self.sensor.has_permission():
            raise PermissionDenied("Allow usage access to peep friends.")

        status = await self.backend.get_status(friend_id)
        friendly_name = status.friendly_name if status and status.friendly_name else OFFLINE_LABEL

        await self.backend.insert_peep(PeepCreate(
            from_user_id=user_id,
            to_user_id=friend_id,
            detected_app=status.current_app if status else None,
            friendly_name=friendly_name,
        ))
        log("PeepService", f"Peeped {friend_id}: {friendly_name}")
        return friendly_name

    async def fetch_friends(self, user_id: str) -> List[FriendWithStatus]:
        """Reload accepted friends with their current status into the context"""
        self.context.is_loading = True
        try:
            profiles = await self.backend.list_accepted_friends(user_id)
            statuses = {s.user_id: s for s in await self.backend.list_statuses([p.id for p in profiles])}
            friends = [
                FriendWithStatus(**p.model_dump(), status=statuses.get(p.id))
                for p in profiles
            ]
            self.context.set_friends(friends)
            return friends
        except PeepError as e:
            log_error("PeepService", "Fetch friends error", e)
            return self.context.friends
        finally:
            self.context.is_loading = False

    async def fetch_pending_requests(self, user_id: str):
        try:
            self.context.pending_requests = await self.backend.list_pending_requests(user_id)
        except PeepError as e:
            log_error("PeepService", "Fetch requests error", e)
        return self.context.pending_requests

    async def send_friend_request(self, user_id: str, username: str):
        matches = await self.backend.find_profiles_by_username(username.strip().lower())
        if not matches:
            raise NotFound("User not found")
        friend = matches[0]
        if friend.id == user_id:
            raise Conflict("You can't add yourself as a friend")

        existing = await self.backend.get_friendship_between(user_id, friend.id)
        if existing is not None:
            if existing.status == "accepted":
                raise Conflict("Already friends!")
            raise Conflict("Friend request already pending")

        # a concurrent request from either side still hits the table's unique key
        try:
            return await self.backend.insert_friendship(user_id, friend.id)
        except Conflict:
            raise Conflict("Friend request already pending")

    async def accept_friend_request(self, request_id: str) -> bool:
        try:
            await self.backend.update_friendship_status(request_id, "accepted")
            return True
        except PeepError as e:
            log_error("PeepService", "Accept request error", e)
            return False

    async def reject_friend_request(self, request_id: str) -> bool:
        try:
            await self.backend.delete_friendship(request_id)
            return True
        except PeepError as e:
            log_error("PeepService", "Reject request error", e)
            return False

    async def get_friend_status(self, friend_id: str) -> Optional[UserStatus]:
        try:
            return await self.backend.get_status(friend_id)
        except PeepError as e:
            log_error("PeepService", "Get status error", e)
            return None
