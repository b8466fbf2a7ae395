import asyncio
import contextlib
from typing import Optional

from peep.backend.base import Backend, ChangeFeed
from peep.core.config import settings
from peep.schemas.realtime import ChangeEvent
from peep.utils.logger import log, log_error


class FeedListener:
    """Consumes one change-feed on behalf of its owner.

    A feed that fails or ends on its own is closed and a fresh one is opened
    with the same table and filter after ``retry_delay`` seconds, until the
    owner stops listening. Stopping cancels the consumer and waits for it, so
    no event is handled once ``stop_listening`` has returned.
    """

    component = "FeedListener"

    def __init__(self, backend: Backend, retry_delay: float = None):
        self.backend = backend
        self.retry_delay = settings.REALTIME_RETRY_SECONDS if retry_delay is None else retry_delay
        self._feed: Optional[ChangeFeed] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def open_feed(self) -> ChangeFeed:
        raise NotImplementedError

    async def on_event(self, event: ChangeEvent):
        raise NotImplementedError

    def listen(self):
        self._feed = self.open_feed()
        self._task = asyncio.get_running_loop().create_task(self._consume(self._feed))

    async def _consume(self, feed: ChangeFeed):
        while True:
            try:
                async for event in feed:
                    await self._dispatch(event)
                log(self.component, "Feed ended, rejoining")
            except Exception as e:
                log_error(self.component, "Feed lost, rejoining", e)
            await feed.close()
            await asyncio.sleep(self.retry_delay)
            feed = self._feed = self.open_feed()

    async def _dispatch(self, event: ChangeEvent):
        try:
            await self.on_event(event)
        except Exception as e:
            log_error(self.component, f"Dropping {event.type} on {event.table}", e)

    async def stop_listening(self) -> bool:
        """Cancel the consumer, then close its feed. Returns False if nothing was open."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        feed, self._feed = self._feed, None
        if feed is None:
            return False
        await feed.close()
        return True
