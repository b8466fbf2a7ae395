import asyncio
import itertools
import time
from typing import Any, Iterable, List, Optional

import httpx

from peep.backend.base import Backend, ChangeFeed
from peep.backend.session_store import FileSessionStore, MemorySessionStore, SessionStore
from peep.core.config import settings
from peep.core.errors import Conflict, PeepError, TransientNetworkFailure
from peep.core.realtime import RealtimeChannel, realtime_url
from peep.schemas.peep import PeepCreate, PeepEvent
from peep.schemas.status import UserStatus
from peep.schemas.user import AuthSession, FriendRequest, Friendship, Profile

UNIQUE_VIOLATION = "23505"
AUTH_PREFIX = "/auth/v1/"

_channel_ids = itertools.count(1)


def _error_for(response: httpx.Response) -> PeepError:
    """Map an error response from the backend onto the client error taxonomy"""
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = (
        body.get("message")
        or body.get("msg")
        or body.get("error_description")
        or body.get("error")
        or response.text
        or f"HTTP {response.status_code}"
    )
    if response.status_code == 409 or body.get("code") == UNIQUE_VIOLATION:
        return Conflict(message)
    return TransientNetworkFailure(message, status_code=response.status_code)


def default_session_store() -> SessionStore:
    if settings.SESSION_FILE:
        return FileSessionStore(settings.SESSION_FILE)
    return MemorySessionStore()


class RestBackend(Backend):
    """Backend reached over its REST row API, auth API and realtime socket.

    The session is read from ``session_store`` on construction and written
    back whenever it changes. An access token about to expire is refreshed
    before the next call, and a call rejected with 401 is retried once after
    a refresh.
    """

    def __init__(self, base_url: str = None, api_key: str = None,
                 transport: httpx.AsyncBaseTransport = None, timeout: float = None,
                 session_store: SessionStore = None):
        self.base_url = (base_url or settings.BACKEND_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.BACKEND_ANON_KEY
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )
        self.session_store = session_store or default_session_store()
        self._session: Optional[AuthSession] = self.session_store.load()
        self._refresh_lock: Optional[asyncio.Lock] = None

    async def aclose(self):
        await self._client.aclose()

    def access_token(self) -> Optional[str]:
        return self._session.access_token if self._session else None

    def _headers(self) -> dict:
        token = self.access_token() or self.api_key
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, *, params: dict = None,
                       json: Any = None, prefer: str = None) -> Any:
        is_auth_call = path.startswith(AUTH_PREFIX)
        if not is_auth_call and self._expiring(self._session):
            await self._refresh_once(self._session)

        sent_with = self._session
        response = await self._send(method, path, params, json, prefer)
        if response.status_code == 401 and not is_auth_call and sent_with and sent_with.refresh_token:
            await self._refresh_once(sent_with)
            response = await self._send(method, path, params, json, prefer)

        if response.status_code >= 400:
            raise _error_for(response)
        if not response.content:
            return None
        return response.json()

    async def _send(self, method: str, path: str, params: Optional[dict], json: Any,
                    prefer: Optional[str]) -> httpx.Response:
        headers = self._headers()
        if prefer:
            headers["Prefer"] = prefer
        try:
            return await self._client.request(method, path, params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            raise TransientNetworkFailure(f"{method} {path} failed: {e}")

    @staticmethod
    def _expiring(session: Optional[AuthSession]) -> bool:
        if session is None or not session.refresh_token or session.expires_at is None:
            return False
        return session.expires_at - time.time() <= settings.TOKEN_REFRESH_MARGIN_SECONDS

    async def _refresh_once(self, stale: AuthSession):
        """Refresh ``stale`` unless a concurrent call already replaced it"""
        if self._refresh_lock is None:
            self._refresh_lock = asyncio.Lock()
        async with self._refresh_lock:
            if self._session is not stale:
                return
            await self.refresh_session()

    async def _select(self, table: str, **filters) -> List[dict]:
        params = {"select": filters.pop("select", "*")}
        params.update(filters)
        return await self._request("GET", f"/rest/v1/{table}", params=params) or []

    # ------------------------------------------------------------------ auth

    def _store_session(self, data: dict) -> AuthSession:
        if not data or not data.get("access_token"):
            raise PeepError("No session returned; the account may need email confirmation")
        user = data.get("user") or {}
        self._session = AuthSession(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            user_id=user.get("id") or (self._session.user_id if self._session else ""),
            expires_at=data.get("expires_at"),
        )
        self.session_store.save(self._session)
        return self._session

    def get_session(self) -> Optional[AuthSession]:
        return self._session

    async def sign_up(self, email: str, password: str, username: str) -> AuthSession:
        data = await self._request("POST", "/auth/v1/signup", json={
            "email": email,
            "password": password,
            "data": {"username": username},
        })
        return self._store_session(data)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        data = await self._request("POST", "/auth/v1/token", params={"grant_type": "password"},
                                   json={"email": email, "password": password})
        return self._store_session(data)

    async def refresh_session(self) -> Optional[AuthSession]:
        if self._session is None or not self._session.refresh_token:
            return None
        data = await self._request("POST", "/auth/v1/token", params={"grant_type": "refresh_token"},
                                   json={"refresh_token": self._session.refresh_token})
        return self._store_session(data)

    async def sign_out(self) -> None:
        if self._session is None:
            return
        try:
            await self._request("POST", "/auth/v1/logout")
        finally:
            self._session = None
            self.session_store.clear()

    # -------------------------------------------------------------- profiles

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        rows = await self._select("profiles", id=f"eq.{user_id}")
        return Profile.model_validate(rows[0]) if rows else None

    async def find_profiles_by_username(self, username: str) -> List[Profile]:
        rows = await self._select("profiles", username=f"eq.{username}")
        return [Profile.model_validate(row) for row in rows]

    async def update_profile(self, user_id: str, **fields) -> None:
        await self._request("PATCH", "/rest/v1/profiles", params={"id": f"eq.{user_id}"}, json=fields)

    # ----------------------------------------------------------- friendships

    async def get_friendship_between(self, user_id: str, other_id: str) -> Optional[Friendship]:
        rows = await self._select(
            "friendships",
            **{"or": f"(and(user_id.eq.{user_id},friend_id.eq.{other_id}),"
                     f"and(user_id.eq.{other_id},friend_id.eq.{user_id}))"},
        )
        return Friendship.model_validate(rows[0]) if rows else None

    async def insert_friendship(self, user_id: str, friend_id: str) -> Friendship:
        rows = await self._request(
            "POST", "/rest/v1/friendships",
            json={"user_id": user_id, "friend_id": friend_id, "status": "pending"},
            prefer="return=representation",
        )
        return Friendship.model_validate(rows[0])

    async def update_friendship_status(self, friendship_id: str, status: str) -> None:
        await self._request("PATCH", "/rest/v1/friendships", params={"id": f"eq.{friendship_id}"},
                            json={"status": status})

    async def delete_friendship(self, friendship_id: str) -> None:
        await self._request("DELETE", "/rest/v1/friendships", params={"id": f"eq.{friendship_id}"})

    async def list_accepted_friends(self, user_id: str) -> List[Profile]:
        sent = await self._select(
            "friendships", select="friend:profiles!friendships_friend_id_fkey(*)",
            user_id=f"eq.{user_id}", status="eq.accepted",
        )
        received = await self._select(
            "friendships", select="friend:profiles!friendships_user_id_fkey(*)",
            friend_id=f"eq.{user_id}", status="eq.accepted",
        )
        return [Profile.model_validate(row["friend"]) for row in sent + received if row.get("friend")]

    async def list_pending_requests(self, user_id: str) -> List[FriendRequest]:
        rows = await self._select(
            "friendships", select="id,created_at,user:profiles!friendships_user_id_fkey(*)",
            friend_id=f"eq.{user_id}", status="eq.pending",
        )
        return [FriendRequest.model_validate(row) for row in rows if row.get("user")]

    # -------------------------------------------------------------- statuses

    async def upsert_status(self, status: UserStatus) -> None:
        await self._request(
            "POST", "/rest/v1/user_status",
            params={"on_conflict": "user_id"},
            json=status.model_dump(mode="json"),
            prefer="resolution=merge-duplicates",
        )

    async def get_status(self, user_id: str) -> Optional[UserStatus]:
        rows = await self._select("user_status", user_id=f"eq.{user_id}")
        return UserStatus.model_validate(rows[0]) if rows else None

    async def list_statuses(self, user_ids: Iterable[str]) -> List[UserStatus]:
        ids = list(user_ids)
        if not ids:
            return []
        rows = await self._select("user_status", user_id=f"in.({','.join(ids)})")
        return [UserStatus.model_validate(row) for row in rows]

    # ----------------------------------------------------------------- peeps

    async def insert_peep(self, peep: PeepCreate) -> PeepEvent:
        rows = await self._request("POST", "/rest/v1/peeps", json=peep.model_dump(mode="json"),
                                   prefer="return=representation")
        return PeepEvent.model_validate(rows[0]) if rows else PeepEvent(**peep.model_dump())

    # -------------------------------------------------------------- realtime

    def subscribe(self, table: str, event: str = "*", row_filter: Optional[str] = None) -> ChangeFeed:
        return RealtimeChannel(
            realtime_url(self.base_url, self.api_key),
            topic=f"{table}-{next(_channel_ids)}",
            table=table,
            event=event,
            row_filter=row_filter,
            token_provider=self.access_token,
        )
