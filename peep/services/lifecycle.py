from typing import Optional

from peep.services.status_broadcaster import StatusBroadcaster
from peep.utils.logger import log

FOREGROUND = "foreground"
BACKGROUND = "background"

# OS app states; anything but "active" means the app is not visible
ACTIVE_STATES = {"active"}


def to_lifecycle_state(app_state: str) -> str:
    return FOREGROUND if app_state in ACTIVE_STATES else BACKGROUND


class AppLifecycleController:
    """Runs the broadcaster only while the app is in the foreground."""

    def __init__(self, broadcaster: StatusBroadcaster):
        self.broadcaster = broadcaster
        self.state: Optional[str] = None
        self.user_id: Optional[str] = None

    def mount(self, user_id: str, app_state: str):
        """Start tracking with the state the OS reports right now"""
        self.user_id = user_id
        self.state = to_lifecycle_state(app_state)
        if self.state == FOREGROUND:
            self.broadcaster.start(user_id)

    def handle(self, app_state: str):
        """Apply one OS lifecycle transition event"""
        if self.user_id is None:
            return
        next_state = to_lifecycle_state(app_state)
        if next_state == self.state:
            return
        previous, self.state = self.state, next_state
        log("AppLifecycle", f"{previous} -> {next_state}")
        if next_state == FOREGROUND:
            self.broadcaster.start(self.user_id)
        else:
            self.broadcaster.stop()

    def unmount(self):
        self.broadcaster.stop()
        self.user_id = None
        self.state = None
