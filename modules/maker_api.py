"""
maker_api.py
------------
Request/response commands against the maker server's trade endpoints
(``POST /api/binance/trade/{id}/{action}``).  Failures are logged and reported
through ``CommandResult``; they never raise into the caller and never touch
the websocket.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp


@dataclass
class CommandResult:
    action: str
    trade_id: str
    ok: bool
    status: Optional[int] = None
    response: Any = None
    error: Optional[str] = None


def _fmt_number(value: float) -> str:
    return f"{float(value):.8f}"


def _fmt_bool(value: bool) -> str:
    return "true" if value else "false"


class MakerApi:
    """Thin async client for trade control commands."""

    TRADE_PATH = "/api/binance/trade/{trade_id}/{action}"

    def __init__(
        self,
        base_url: str,
        logger: Optional[logging.Logger] = None,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    # -------------------------------------------------------------------- #
    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _post(
        self, trade_id: str, action: str, params: Optional[Dict[str, str]] = None
    ) -> CommandResult:
        url = self.base_url + self.TRADE_PATH.format(trade_id=trade_id, action=action)
        session = self._get_session()
        try:
            async with session.post(url, params=params or {}) as resp:
                try:
                    body = await resp.json(content_type=None)
                except ValueError:
                    body = await resp.text()
                if resp.status >= 400:
                    self.logger.warning(
                        "%s failed for trade %s: HTTP %s %s", action, trade_id, resp.status, body
                    )
                    return CommandResult(
                        action, trade_id, False, resp.status, body, f"HTTP {resp.status}"
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            self.logger.warning("%s failed for trade %s: %s", action, trade_id, exc)
            return CommandResult(action, trade_id, False, error=str(exc) or type(exc).__name__)

        self.logger.info("%s response for trade %s: %s", action, trade_id, body)
        return CommandResult(action, trade_id, True, resp.status, body)

    # ------------------------------ commands ----------------------------- #
    async def update_stop_loss(self, trade_id: str, enable: bool, percent: float) -> CommandResult:
        return await self._post(trade_id, "stopLoss", {
            "enable": _fmt_bool(enable),
            "percent": _fmt_number(percent),
        })

    async def update_trailing_stop(
        self, trade_id: str, enable: bool, percent: float, deviation: float
    ) -> CommandResult:
        return await self._post(trade_id, "trailingStop", {
            "enable": _fmt_bool(enable),
            "percent": _fmt_number(percent),
            "deviation": _fmt_number(deviation),
        })

    async def limit_sell(self, trade_id: str, percent: float) -> CommandResult:
        return await self._post(trade_id, "limitSell", {"percent": _fmt_number(percent)})

    async def market_sell(self, trade_id: str) -> CommandResult:
        return await self._post(trade_id, "marketSell")

    async def archive_trade(self, trade_id: str) -> CommandResult:
        return await self._post(trade_id, "archive")

    async def cancel_buy(self, trade_id: str) -> CommandResult:
        return await self._post(trade_id, "cancelBuy")

    async def cancel_sell(self, trade_id: str) -> CommandResult:
        return await self._post(trade_id, "cancelSell")
