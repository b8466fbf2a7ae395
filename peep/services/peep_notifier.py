from peep.backend.base import Backend, ChangeFeed
from peep.core.errors import PeepError
from peep.core.toast import Haptics, PEEP_VIBRATION_PATTERN, Toast
from peep.schemas.peep import PeepEvent
from peep.schemas.realtime import ChangeEvent
from peep.services.feed_listener import FeedListener
from peep.utils.logger import log, log_error

PEEPS_TABLE = "peeps"
UNKNOWN_SENDER = "Someone"


class PeepNotifier(FeedListener):
    """Shows a toast for every peep addressed to the signed-in user."""

    component = "PeepNotifier"

    def __init__(self, backend: Backend, toast: Toast, haptics: Haptics, retry_delay: float = None):
        super().__init__(backend, retry_delay=retry_delay)
        self.toast = toast
        self.haptics = haptics
        self.user_id = None

    def open_feed(self) -> ChangeFeed:
        return self.backend.subscribe(PEEPS_TABLE, event="INSERT", row_filter=f"to_user_id=eq.{self.user_id}")

    async def start(self, user_id: str):
        await self.stop()
        self.user_id = user_id
        self.listen()

    async def on_event(self, event: ChangeEvent):
        await self.handle(event)

    async def handle(self, event: ChangeEvent):
        if event.type != "INSERT" or not event.record:
            return
        peep = PeepEvent.model_validate(event.record)
        name = await self.sender_name(peep.from_user_id)
        self.toast.show(f"👀 {name} peeped you!")
        self.haptics.vibrate(PEEP_VIBRATION_PATTERN)
        log(self.component, f"Peeped by {name}")

    async def sender_name(self, user_id: str) -> str:
        try:
            profile = await self.backend.get_profile(user_id)
        except PeepError as e:
            log_error(self.component, "Sender lookup failed", e)
            return UNKNOWN_SENDER
        if profile is None or not profile.username:
            return UNKNOWN_SENDER
        return profile.username

    async def stop(self):
        await self.stop_listening()
