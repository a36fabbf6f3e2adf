"""
maker_socket.py
---------------
Self-healing websocket to the maker server.  One physical connection at a
time; every close (clean, error, refused connect) schedules the next
``connect()`` through the ReconnectPolicy.  Frames are handed to the
MessageRouter in arrival order; a frame that fails to decode is logged and
dropped without touching the connection.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

import websockets
from websockets.exceptions import ConnectionClosedOK

from core.message_handler import DecodeError, MessageRouter
from modules.reconnect_policy import ReconnectPolicy


class MakerWebSocket:
    def __init__(
        self,
        url: str,
        router: MessageRouter,
        policy: Optional[ReconnectPolicy] = None,
        logger: Optional[logging.Logger] = None,
        *,
        idle_timeout: float = 0.0,
        ping_interval: Optional[float] = None,
        connector: Optional[Callable[..., Any]] = None,
    ) -> None:
        self.url = url
        self.router = router
        self.policy = policy or ReconnectPolicy()
        self.logger = logger or logging.getLogger(self.__class__.__name__)

        # 0 = wait for frames forever
        self.idle_timeout = float(idle_timeout or 0.0)
        self.ping_interval = ping_interval
        self._connector = connector or websockets.connect

        self.ws: Optional[Any] = None
        self._task: Optional[asyncio.Task] = None
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None
        self._stop = False

    # -------------------------------------------------------------- #
    @property
    def is_open(self) -> bool:
        return self.ws is not None

    def connect(self) -> None:
        """Start a session unless one is already running. Needs a running loop."""
        if self._stop:
            return
        if self._task is not None and not self._task.done():
            return
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None
        self._task = asyncio.get_running_loop().create_task(self._session())

    async def shutdown(self) -> None:
        """Stop reconnecting and close the current session, if any."""
        self._stop = True
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    # -------------------------------------------------------------- #
    async def _session(self) -> None:
        ws = None
        cancelled = False
        try:
            async with self._connector(self.url, ping_interval=self.ping_interval) as ws:
                self.ws = ws
                self._on_open()
                while True:
                    raw = await self._receive(ws)
                    self._on_message(raw)
        except ConnectionClosedOK:
            pass
        except asyncio.CancelledError:
            cancelled = True
            raise
        except Exception as exc:
            await self._on_error(exc, ws)
        finally:
            self.ws = None
            self._task = None
            self._on_close(reconnect=not cancelled)

    async def _receive(self, ws: Any) -> Any:
        if not self.idle_timeout:
            return await ws.recv()
        try:
            return await asyncio.wait_for(ws.recv(), timeout=self.idle_timeout)
        except asyncio.TimeoutError:
            raise ConnectionError(f"no frame received for {self.idle_timeout:.1f}s") from None

    # ------------------------- lifecycle hooks -------------------- #
    def _on_open(self) -> None:
        self.logger.info("✅ maker websocket opened → %s", self.url)
        self.policy.reset()

    async def _on_error(self, exc: Exception, ws: Any) -> None:
        self.logger.warning("❌ maker websocket error: %s", exc)
        if ws is None:
            return
        try:
            await ws.close()
        except Exception as close_exc:
            self.logger.debug("close after error failed: %s", close_exc)

    def _on_message(self, raw: Any) -> None:
        try:
            self.router.dispatch(raw)
        except DecodeError as exc:
            self.logger.warning("failed to parse maker socket frame: %s | %.200r", exc, raw)

    def _on_close(self, reconnect: bool = True) -> None:
        if self._stop or not reconnect:
            self.logger.info("maker websocket stopped")
            return
        delay = self.policy.next_delay()
        if delay > 0:
            self.logger.info(
                "🔁 maker websocket closed, reconnecting in %.1fs (failures=%d)",
                delay,
                self.policy.failures,
            )
            loop = asyncio.get_running_loop()
            self._reconnect_handle = loop.call_later(delay, self.connect)
        else:
            self.logger.info("🔁 maker websocket closed, reconnecting")
            self.connect()
