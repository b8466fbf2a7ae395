import asyncio
from datetime import datetime, timezone
from typing import Optional

from peep.backend.base import Backend
from peep.core.config import settings
from peep.core.sensor import ForegroundAppSensor
from peep.schemas.status import UserStatus
from peep.utils.app_names import get_friendly_app_name
from peep.utils.logger import log, log_error


class StatusBroadcaster:
    """Publishes this device's foreground app to the user's status row.

    Owns at most one polling task. The task samples immediately, then once
    per interval, until ``stop``.
    """

    def __init__(self, backend: Backend, sensor: ForegroundAppSensor, interval: float = None):
        self.backend = backend
        self.sensor = sensor
        self.interval = settings.BROADCAST_INTERVAL_SECONDS if interval is None else interval
        self._task: Optional[asyncio.Task] = None
        self.user_id: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, user_id: str):
        """Begin broadcasting for ``user_id``, replacing any running loop"""
        self.stop()
        self.user_id = user_id
        self._task = asyncio.get_running_loop().create_task(self._run(user_id))
        log("StatusBroadcaster", f"Started (every {self.interval:g}s)")

    def stop(self):
        """Cancel the polling loop. Safe to call when not running."""
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        log("StatusBroadcaster", "Stopped")

    async def _run(self, user_id: str):
        while True:
            await self.broadcast(user_id)
            await asyncio.sleep(self.interval)

    async def broadcast(self, user_id: str) -> Optional[str]:
        """
        Take one sample and upsert it.

        Returns the friendly name that was stored, or None when nothing was
        stored (no permission, nothing in the foreground, or a failed call).
        """
        try:
            if not await self.sensor.has_permission():
                log("StatusBroadcaster", "No usage stats permission")
                return None
            current_app = await self.sensor.get_foreground_app()
            if not current_app:
                return None
            friendly_name = get_friendly_app_name(current_app)
            await self._store(user_id, current_app, friendly_name)
            log("StatusBroadcaster", "Updated status to", friendly_name)
            return friendly_name
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log_error("StatusBroadcaster", "Broadcast error", e)
            return None

    async def broadcast_now(self, user_id: str) -> Optional[str]:
        """Manual one-off broadcast, e.g. right after peeping someone.

        Unlike the periodic sample an empty reading is stored as idle.
        """
        try:
            current_app = await self.sensor.get_foreground_app()
            friendly_name = get_friendly_app_name(current_app)
            await self._store(user_id, current_app, friendly_name)
            return friendly_name
        except Exception as e:
            log_error("StatusBroadcaster", "Manual broadcast error", e)
            return None

    async def _store(self, user_id: str, current_app: Optional[str], friendly_name: str):
        await self.backend.upsert_status(UserStatus(
            user_id=user_id,
            current_app=current_app,
            friendly_name=friendly_name,
            updated_at=datetime.now(timezone.utc),
        ))
