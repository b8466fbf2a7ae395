"""Contract of the hosted backend the client talks to.

The backend owns persistence, auth, realtime fan-out and push delivery.
Everything the client core needs from it goes through ``Backend``.
"""
from abc import ABC, abstractmethod
from typing import AsyncIterator, Iterable, List, Optional

from peep.schemas.peep import PeepCreate, PeepEvent
from peep.schemas.realtime import ChangeEvent
from peep.schemas.status import UserStatus
from peep.schemas.user import AuthSession, FriendRequest, Friendship, Profile


class ChangeFeed(ABC):
    """Handle on one realtime subscription.

    Iterating yields change events lazily and forever. ``close`` tears the
    connection down and ends the iteration; calling it twice is harmless.
    """

    def __aiter__(self) -> AsyncIterator[ChangeEvent]:
        return self

    @abstractmethod
    async def __anext__(self) -> ChangeEvent:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        ...

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


class Backend(ABC):

    # Auth
    @abstractmethod
    async def sign_up(self, email: str, password: str, username: str) -> AuthSession: ...

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession: ...

    @abstractmethod
    async def sign_out(self) -> None: ...

    @abstractmethod
    async def refresh_session(self) -> Optional[AuthSession]: ...

    @abstractmethod
    def get_session(self) -> Optional[AuthSession]: ...

    # Profiles
    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[Profile]: ...

    @abstractmethod
    async def find_profiles_by_username(self, username: str) -> List[Profile]: ...

    @abstractmethod
    async def update_profile(self, user_id: str, **fields) -> None: ...

    # Friendships
    @abstractmethod
    async def get_friendship_between(self, user_id: str, other_id: str) -> Optional[Friendship]: ...

    @abstractmethod
    async def insert_friendship(self, user_id: str, friend_id: str) -> Friendship: ...

    @abstractmethod
    async def update_friendship_status(self, friendship_id: str, status: str) -> None: ...

    @abstractmethod
    async def delete_friendship(self, friendship_id: str) -> None: ...

    @abstractmethod
    async def list_accepted_friends(self, user_id: str) -> List[Profile]:
        """Profiles of accepted friends, whichever side sent the request."""

    @abstractmethod
    async def list_pending_requests(self, user_id: str) -> List[FriendRequest]:
        """Pending requests addressed to ``user_id``."""

    # Statuses
    @abstractmethod
    async def upsert_status(self, status: UserStatus) -> None:
        """Insert or replace the single status row keyed by ``status.user_id``."""

    @abstractmethod
    async def get_status(self, user_id: str) -> Optional[UserStatus]: ...

    @abstractmethod
    async def list_statuses(self, user_ids: Iterable[str]) -> List[UserStatus]: ...

    # Peeps
    @abstractmethod
    async def insert_peep(self, peep: PeepCreate) -> PeepEvent: ...

    # Realtime
    @abstractmethod
    def subscribe(self, table: str, event: str = "*", row_filter: Optional[str] = None) -> ChangeFeed:
        """Open a change-feed on ``table``. ``row_filter`` uses the ``column=eq.value`` form."""
