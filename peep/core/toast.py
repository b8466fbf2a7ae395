import asyncio
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from peep.core.config import settings

PEEP_VIBRATION_PATTERN = (0, 50, 30, 50)


class Haptics(ABC):
    """Device vibration. Supplied by the platform layer."""

    @abstractmethod
    def vibrate(self, pattern: Sequence[int]) -> None:
        ...


class Toast:
    """A transient message that hides itself after ``duration`` seconds.

    Showing a new message replaces the current one and restarts the timer.
    ``hide`` is what navigation calls to dismiss it early.
    """

    def __init__(self, duration: float = None):
        self.duration = settings.TOAST_DURATION_SECONDS if duration is None else duration
        self.message: Optional[str] = None
        self.visible = False
        self._hide_task: Optional[asyncio.Task] = None

    def show(self, message: str):
        self._cancel_timer()
        self.message = message
        self.visible = True
        self._hide_task = asyncio.get_running_loop().create_task(self._auto_hide())

    def hide(self):
        self._cancel_timer()
        self.visible = False

    async def _auto_hide(self):
        await asyncio.sleep(self.duration)
        self.visible = False
        self._hide_task = None

    def _cancel_timer(self):
        if self._hide_task is not None:
            self._hide_task.cancel()
            self._hide_task = None
