"""Client side of the push channel.

Frames arrive as ``{"event": name, "data": {...}}``.  Handlers registered
with :meth:`PushChannel.on` run one after another in delivery order; a
frame is fully handled before the next one is read.  Nothing is reordered
or deduplicated.
"""
from __future__ import annotations

import inspect
import json
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Optional, Union
from urllib.parse import urlencode

import websockets

logger = logging.getLogger(__name__)

Handler = Callable[[dict], Union[None, Awaitable[None]]]


class PushChannel:
    def __init__(self, url: str, token: str = ""):
        self.url = url
        self.token = token
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._ws: Optional[Any] = None

    @property
    def connect_url(self) -> str:
        if not self.token:
            return self.url
        sep = "&" if "?" in self.url else "?"
        return f"{self.url}{sep}{urlencode({'token': self.token})}"

    def on(self, event: str, handler: Handler) -> None:
        self._handlers[event].append(handler)

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)
            if not handlers:
                del self._handlers[event]

    def handler_count(self, event: Optional[str] = None) -> int:
        if event is not None:
            return len(self._handlers.get(event, ()))
        return sum(len(h) for h in self._handlers.values())

    async def dispatch(self, frame: dict) -> int:
        """Run every handler registered for the frame's event; return how many ran."""
        event = frame.get("event")
        if event is None and frame.get("type") == "error":
            logger.warning("push channel error %s: %s", frame.get("code"), frame.get("message"))
            return 0
        data = frame.get("data") or {}
        ran = 0
        for handler in list(self._handlers.get(event, ())):
            try:
                result = handler(data)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("handler for %s failed", event)
            ran += 1
        return ran

    async def listen(self) -> None:
        """Connect and dispatch frames until the server closes the socket."""
        async with websockets.connect(self.connect_url) as ws:
            self._ws = ws
            try:
                async for message in ws:
                    try:
                        frame = json.loads(message)
                    except ValueError:
                        logger.warning("dropping malformed push frame: %.200s", message)
                        continue
                    if isinstance(frame, dict):
                        await self.dispatch(frame)
            finally:
                self._ws = None

    async def ping(self) -> None:
        if self._ws is not None:
            await self._ws.send(json.dumps({"type": "ping"}))

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
