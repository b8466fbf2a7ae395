"""
Shared fixtures: an in-memory backend, a scriptable sensor and recording
toast/haptics, so the client core runs without a device or a network.
"""
import asyncio
import itertools
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional

import pytest

from peep.backend.base import Backend, ChangeFeed
from peep.core.context import AppContext
from peep.core.errors import Conflict, TransientNetworkFailure
from peep.core.sensor import ForegroundAppSensor
from peep.core.toast import Haptics, Toast
from peep.schemas.peep import PeepCreate, PeepEvent
from peep.schemas.realtime import ChangeEvent
from peep.schemas.status import UserStatus
from peep.schemas.user import AuthSession, FriendRequest, Friendship, Profile

_CLOSED = object()


class QueueFeed(ChangeFeed):
    def __init__(self, table: str, event: str, row_filter: Optional[str]):
        self.table = table
        self.event = event
        self.row_filter = row_filter
        self.queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def matches(self, table: str, change_type: str, record: dict) -> bool:
        if self._closed or table != self.table:
            return False
        if self.event != "*" and self.event != change_type:
            return False
        if self.row_filter:
            column, _, value = self.row_filter.partition("=eq.")
            return str(record.get(column)) == value
        return True

    async def __anext__(self) -> ChangeEvent:
        if self._closed:
            raise StopAsyncIteration
        item = await self.queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, Exception):
            raise item
        return item

    def fail(self, error: Exception):
        """Make the pending or next read raise ``error``, like a dropped socket"""
        self.queue.put_nowait(error)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.queue.put_nowait(_CLOSED)


class FakeBackend(Backend):
    """Keeps tables in dicts and fans row changes out to open feeds"""

    def __init__(self):
        self.profiles = {}
        self.passwords = {}
        self.friendships = {}
        self.statuses = {}
        self.peeps: List[PeepEvent] = []
        self.feeds: List[QueueFeed] = []
        self.calls: List[str] = []
        self.failing = set()
        self.session: Optional[AuthSession] = None
        self._ids = itertools.count(1)

    # helpers
    def _call(self, name: str):
        self.calls.append(name)
        if name in self.failing:
            raise TransientNetworkFailure(f"{name} failed")

    def add_profile(self, username: str, user_id: str = None) -> Profile:
        profile = Profile(id=user_id or str(uuid.uuid4()), username=username)
        self.profiles[profile.id] = profile
        return profile

    def befriend(self, a: str, b: str, status: str = "accepted") -> Friendship:
        friendship = Friendship(id=f"f{next(self._ids)}", user_id=a, friend_id=b, status=status)
        self.friendships[friendship.id] = friendship
        return friendship

    def open_feeds(self, table: str = None) -> List[QueueFeed]:
        return [f for f in self.feeds if not f.closed and (table is None or f.table == table)]

    def publish(self, table: str, change_type: str, record: dict):
        event = ChangeEvent(type=change_type, table=table, record=record)
        for feed in self.feeds:
            if feed.matches(table, change_type, record):
                feed.queue.put_nowait(event)

    # auth
    async def sign_up(self, email, password, username):
        self._call("sign_up")
        if any(p.username == username for p in self.profiles.values()):
            raise Conflict('duplicate key value violates unique constraint "profiles_username_key"')
        profile = self.add_profile(username)
        self.passwords[email] = (password, profile.id)
        self.session = AuthSession(access_token=f"token-{profile.id}", refresh_token="r", user_id=profile.id)
        return self.session

    async def sign_in(self, email, password):
        self._call("sign_in")
        stored = self.passwords.get(email)
        if stored is None or stored[0] != password:
            raise TransientNetworkFailure("Invalid login credentials", status_code=400)
        self.session = AuthSession(access_token=f"token-{stored[1]}", refresh_token="r", user_id=stored[1])
        return self.session

    async def sign_out(self):
        self._call("sign_out")
        self.session = None

    async def refresh_session(self):
        self._call("refresh_session")
        return self.session

    def get_session(self):
        return self.session

    # profiles
    async def get_profile(self, user_id):
        self._call("get_profile")
        return self.profiles.get(user_id)

    async def find_profiles_by_username(self, username):
        self._call("find_profiles_by_username")
        return [p for p in self.profiles.values() if p.username == username]

    async def update_profile(self, user_id, **fields):
        self._call("update_profile")
        profile = self.profiles[user_id]
        self.profiles[user_id] = profile.model_copy(update=fields)

    # friendships
    async def get_friendship_between(self, user_id, other_id):
        self._call("get_friendship_between")
        for f in self.friendships.values():
            if {f.user_id, f.friend_id} == {user_id, other_id}:
                return f
        return None

    async def insert_friendship(self, user_id, friend_id):
        self._call("insert_friendship")
        for f in self.friendships.values():
            if (f.user_id, f.friend_id) == (user_id, friend_id):
                raise Conflict("duplicate key value violates unique constraint")
        return self.befriend(user_id, friend_id, status="pending")

    async def update_friendship_status(self, friendship_id, status):
        self._call("update_friendship_status")
        f = self.friendships[friendship_id]
        self.friendships[friendship_id] = f.model_copy(update={"status": status})

    async def delete_friendship(self, friendship_id):
        self._call("delete_friendship")
        self.friendships.pop(friendship_id, None)

    async def list_accepted_friends(self, user_id):
        self._call("list_accepted_friends")
        result = []
        for f in self.friendships.values():
            if f.status != "accepted":
                continue
            if f.user_id == user_id:
                result.append(self.profiles[f.friend_id])
            elif f.friend_id == user_id:
                result.append(self.profiles[f.user_id])
        return result

    async def list_pending_requests(self, user_id):
        self._call("list_pending_requests")
        return [
            FriendRequest(id=f.id, user=self.profiles[f.user_id], created_at=f.created_at)
            for f in self.friendships.values()
            if f.friend_id == user_id and f.status == "pending"
        ]

    # statuses
    async def upsert_status(self, status: UserStatus):
        self._call("upsert_status")
        change_type = "UPDATE" if status.user_id in self.statuses else "INSERT"
        self.statuses[status.user_id] = status
        self.publish("user_status", change_type, status.model_dump(mode="json"))

    async def get_status(self, user_id):
        self._call("get_status")
        return self.statuses.get(user_id)

    async def list_statuses(self, user_ids: Iterable[str]):
        self._call("list_statuses")
        return [self.statuses[u] for u in user_ids if u in self.statuses]

    # peeps
    async def insert_peep(self, peep: PeepCreate):
        self._call("insert_peep")
        event = PeepEvent(**peep.model_dump(), id=str(uuid.uuid4()), created_at=datetime.now(timezone.utc))
        self.peeps.append(event)
        self.publish("peeps", "INSERT", event.model_dump(mode="json"))
        return event

    # realtime
    def subscribe(self, table, event="*", row_filter=None):
        self.calls.append("subscribe")
        feed = QueueFeed(table, event, row_filter)
        self.feeds.append(feed)
        return feed


class FakeSensor(ForegroundAppSensor):
    def __init__(self, app: Optional[str] = "com.spotify.music", permission: bool = True):
        self.app = app
        self.permission = permission
        self.samples = 0
        self.permission_requests = 0

    async def has_permission(self):
        return self.permission

    async def request_permission(self):
        self.permission_requests += 1

    async def get_foreground_app(self):
        self.samples += 1
        return self.app


class RecordingToast(Toast):
    def __init__(self, duration: float = 3.0):
        super().__init__(duration=duration)
        self.shown: List[str] = []

    def show(self, message: str):
        self.shown.append(message)
        super().show(message)


class RecordingHaptics(Haptics):
    def __init__(self):
        self.pulses = []

    def vibrate(self, pattern):
        self.pulses.append(tuple(pattern))


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def sensor():
    return FakeSensor()


@pytest.fixture
def context():
    return AppContext()


@pytest.fixture
def toast():
    return RecordingToast()


@pytest.fixture
def haptics():
    return RecordingHaptics()


@pytest.fixture
def settle():
    """Let pending tasks on the loop run to their next real wait"""
    async def _settle(rounds: int = 20):
        for _ in range(rounds):
            await asyncio.sleep(0)
    return _settle
