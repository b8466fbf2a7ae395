import json
import asyncio
import itertools
from typing import Callable, Optional
from urllib.parse import urlencode

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from peep.backend.base import ChangeFeed
from peep.core.config import settings
from peep.core.errors import TransientNetworkFailure
from peep.schemas.realtime import ChangeEvent
from peep.utils.logger import log, log_error


def realtime_url(base_url: str, api_key: str) -> str:
    """Websocket endpoint of the realtime service for an http(s) base URL"""
    ws_base = base_url.rstrip("/")
    if ws_base.startswith("https://"):
        ws_base = "wss://" + ws_base[len("https://"):]
    elif ws_base.startswith("http://"):
        ws_base = "ws://" + ws_base[len("http://"):]
    return f"{ws_base}/realtime/v1/websocket?{urlencode({'apikey': api_key, 'vsn': '1.0.0'})}"


def build_join_message(topic: str, table: str, event: str, row_filter: Optional[str],
                       access_token: Optional[str], ref: str) -> dict:
    change = {"event": event, "schema": "public", "table": table}
    if row_filter:
        change["filter"] = row_filter
    payload = {
        "config": {
            "broadcast": {"self": False},
            "presence": {"key": ""},
            "postgres_changes": [change],
        }
    }
    if access_token:
        payload["access_token"] = access_token
    return {"topic": topic, "event": "phx_join", "payload": payload, "ref": ref}


def parse_change_message(message: dict) -> Optional[ChangeEvent]:
    """Turn a ``postgres_changes`` frame into a ChangeEvent; other frames give None"""
    if message.get("event") != "postgres_changes":
        return None
    data = (message.get("payload") or {}).get("data") or {}
    if "type" not in data or "table" not in data:
        return None
    return ChangeEvent(
        type=data["type"],
        table=data["table"],
        schema=data.get("schema", "public"),
        record=data.get("record") or {},
        old_record=data.get("old_record") or {},
        commit_timestamp=data.get("commit_timestamp"),
    )


class RealtimeChannel(ChangeFeed):
    """One channel on the backend's realtime socket.

    Connects on first iteration, joins the channel for a single table and
    keeps the socket alive with heartbeats until closed.
    """

    def __init__(self, url: str, topic: str, table: str, event: str = "*",
                 row_filter: Optional[str] = None, token_provider: Callable[[], Optional[str]] = None,
                 heartbeat_interval: float = None):
        self.url = url
        self.topic = f"realtime:{topic}"
        self.table = table
        self.event = event
        self.row_filter = row_filter
        # called on every join
        self.token_provider = token_provider
        self.heartbeat_interval = heartbeat_interval or settings.REALTIME_HEARTBEAT_SECONDS
        self._ws = None
        self._heartbeat_task: Optional[asyncio.Task] = None
        self._closed = False
        self._refs = itertools.count(1)

    @property
    def closed(self) -> bool:
        return self._closed

    async def _connect(self):
        try:
            self._ws = await websockets.connect(self.url)
            join_ref = str(next(self._refs))
            await self._ws.send(json.dumps(build_join_message(
                self.topic, self.table, self.event, self.row_filter,
                self.token_provider() if self.token_provider else None, join_ref
            )))
            while True:
                reply = json.loads(await self._ws.recv())
                if reply.get("event") == "phx_reply" and reply.get("ref") == join_ref:
                    break
        except (OSError, WebSocketException) as e:
            await self._drop_socket()
            raise TransientNetworkFailure(f"Realtime connect failed: {e}")

        status = (reply.get("payload") or {}).get("status")
        if status != "ok":
            await self._drop_socket()
            raise TransientNetworkFailure(f"Realtime join rejected for {self.topic}: {reply.get('payload')}")

        self._heartbeat_task = asyncio.get_running_loop().create_task(self._heartbeat())
        log("Realtime", f"Joined {self.topic} ({self.table}, {self.event})")

    async def _heartbeat(self):
        while not self._closed and self._ws is not None:
            await asyncio.sleep(self.heartbeat_interval)
            try:
                await self._ws.send(json.dumps({
                    "topic": "phoenix", "event": "heartbeat", "payload": {}, "ref": str(next(self._refs))
                }))
            except ConnectionClosed:
                return

    async def __anext__(self) -> ChangeEvent:
        if self._closed:
            raise StopAsyncIteration
        if self._ws is None:
            await self._connect()
        while True:
            ws = self._ws
            if ws is None:
                raise StopAsyncIteration
            try:
                raw = await ws.recv()
            except ConnectionClosed as e:
                if self._closed:
                    raise StopAsyncIteration
                raise TransientNetworkFailure(f"Realtime connection lost: {e}")
            try:
                message = json.loads(raw)
            except ValueError:
                log_error("Realtime", "Dropping malformed frame")
                continue
            change = parse_change_message(message)
            if change is not None:
                return change

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            self._heartbeat_task = None
        if self._ws is not None:
            try:
                await self._ws.send(json.dumps({
                    "topic": self.topic, "event": "phx_leave", "payload": {}, "ref": str(next(self._refs))
                }))
            except ConnectionClosed:
                pass
            await self._drop_socket()
            log("Realtime", f"Left {self.topic}")

    async def _drop_socket(self):
        if self._ws is not None:
            ws, self._ws = self._ws, None
            await ws.close()
