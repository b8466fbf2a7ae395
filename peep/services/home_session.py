from pydantic import BaseModel
from typing import Optional

from peep.backend.base import Backend
from peep.core.context import AppContext
from peep.core.errors import PermissionDenied, PeepError
from peep.core.sensor import ForegroundAppSensor
from peep.core.toast import Haptics, PEEP_VIBRATION_PATTERN, Toast
from peep.services.auth_service import AuthService
from peep.services.lifecycle import AppLifecycleController
from peep.services.notification_service import NotificationService
from peep.services.peep_notifier import PeepNotifier
from peep.services.peep_service import PeepService
from peep.services.status_broadcaster import StatusBroadcaster
from peep.services.status_subscription import StatusSubscription
from peep.utils.logger import log, log_error

PEEP_FAILED = "Could not peep friend"


class PeepResult(BaseModel):
    friendly_name: Optional[str] = None
    needs_permission: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.friendly_name is not None


class HomeSession:
    """Home screen of a signed-in user.

    Owns the broadcast timer, the friend status feed and the incoming-peep
    feed for as long as the screen is mounted.
    """

    def __init__(self, context: AppContext, backend: Backend, sensor: ForegroundAppSensor,
                 haptics: Haptics, toast: Toast = None, broadcast_interval: float = None):
        self.context = context
        self.backend = backend
        self.sensor = sensor
        self.haptics = haptics
        self.toast = toast or Toast()
        self.broadcaster = StatusBroadcaster(backend, sensor, interval=broadcast_interval)
        self.lifecycle = AppLifecycleController(self.broadcaster)
        self.subscription = StatusSubscription(backend, context)
        self.notifier = PeepNotifier(backend, self.toast, haptics)
        self.peeps = PeepService(backend, sensor, context)
        self.auth = AuthService(backend, context)
        self.notifications = NotificationService(backend)
        self.mounted = False

    async def mount(self, app_state: str = "active"):
        user_id = self.context.user_id
        if user_id is None:
            raise PeepError("Not signed in")
        if self.mounted:
            await self.unmount()
        self.mounted = True
        await self.peeps.fetch_friends(user_id)
        self.lifecycle.mount(user_id, app_state)
        await self.subscription.subscribe(self.context.friend_ids())
        await self.notifier.start(user_id)
        log("HomeSession", f"Mounted for {user_id}")

    def on_app_state_change(self, app_state: str):
        self.lifecycle.handle(app_state)

    async def refresh(self):
        """Pull-to-refresh: reload friends and follow the new friend set"""
        user_id = self.context.user_id
        if user_id is None:
            return
        await self.peeps.fetch_friends(user_id)
        if self.mounted:
            await self.subscription.subscribe(self.context.friend_ids())

    async def peep(self, friend_id: str) -> PeepResult:
        user_id = self.context.user_id
        if user_id is None:
            return PeepResult(error="Not signed in")
        try:
            friendly_name = await self.peeps.peep(user_id, friend_id)
        except PermissionDenied as e:
            return PeepResult(needs_permission=True, error=e.message)
        except PeepError as e:
            log_error("HomeSession", "Peep error", e)
            self._notify(PEEP_FAILED)
            return PeepResult(error=PEEP_FAILED)

        friend = self.context.friend(friend_id)
        name = friend.username if friend else friend_id
        self._notify(f"{name}: {friendly_name}")
        return PeepResult(friendly_name=friendly_name)

    async def open_permission_settings(self):
        await self.sensor.request_permission()

    def _notify(self, message: str):
        self.toast.show(message)
        self.haptics.vibrate(PEEP_VIBRATION_PATTERN)

    async def unmount(self):
        """Release the timer and both feeds. Safe to call twice."""
        self.lifecycle.unmount()
        await self.subscription.unsubscribe()
        await self.notifier.stop()
        self.toast.hide()
        if self.mounted:
            log("HomeSession", "Unmounted")
        self.mounted = False

    async def sign_out(self):
        user_id = self.context.user_id
        await self.unmount()
        if user_id is not None:
            await self.notifications.clear_push_token(user_id)
        await self.auth.sign_out()
        self.context.clear()
