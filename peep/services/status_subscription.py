from typing import FrozenSet, Iterable

from peep.backend.base import Backend, ChangeFeed
from peep.core.context import AppContext
from peep.schemas.realtime import ChangeEvent
from peep.schemas.status import UserStatus
from peep.services.feed_listener import FeedListener
from peep.utils.logger import log

STATUS_TABLE = "user_status"


class StatusSubscription(FeedListener):
    """Keeps friends' statuses in the context current from the change-feed.

    One feed at a time. Last event per user wins.
    """

    component = "StatusSubscription"

    def __init__(self, backend: Backend, context: AppContext, retry_delay: float = None):
        super().__init__(backend, retry_delay=retry_delay)
        self.context = context
        self.friend_ids: FrozenSet[str] = frozenset()

    def open_feed(self) -> ChangeFeed:
        return self.backend.subscribe(STATUS_TABLE, event="*")

    async def subscribe(self, friend_ids: Iterable[str]):
        await self.unsubscribe()
        self.friend_ids = frozenset(friend_ids)
        if not self.friend_ids:
            return
        self.listen()
        log(self.component, f"Watching {len(self.friend_ids)} friends")

    async def on_event(self, event: ChangeEvent):
        self.apply(event)

    def apply(self, event: ChangeEvent) -> bool:
        """Patch the matching friend's status; unknown users are ignored"""
        if event.type == "DELETE" or not event.record:
            return False
        user_id = event.record.get("user_id")
        if user_id not in self.friend_ids:
            return False
        return self.context.apply_status(UserStatus.model_validate(event.record))

    async def unsubscribe(self):
        if await self.stop_listening():
            log(self.component, "Closed")
