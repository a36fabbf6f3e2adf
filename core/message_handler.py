"""
message_handler.py
==================
Decoding and routing of inbound maker websocket frames.  ``decode_message``
turns one raw text frame into a typed envelope (or raises ``DecodeError``);
``MessageRouter`` applies the envelope to the trade store or the tick stream.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from models.agg_trade import AggTrade
from models.maker_message import (
    AggTradeMessage,
    MakerMessage,
    MakerMessageType,
    PingMessage,
    TradeArchivedMessage,
    TradeMessage,
    UnknownMessage,
)
from models.trade_state import TradeState
from modules.trade_store import TradeStore
from utils.event_bus import EventStream


class DecodeError(ValueError):
    """Raised for a frame that cannot be turned into a MakerMessage."""


# ---------------------------------------------------------------------------
# Decoding helpers
# ---------------------------------------------------------------------------
def _parse_json(raw: Union[str, bytes]) -> Dict[str, Any]:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"frame is not UTF-8: {exc}") from exc
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError, RecursionError) as exc:
        raise DecodeError(f"frame is not JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise DecodeError(f"frame must be a JSON object, got {type(payload).__name__}")
    return payload


def _require(payload: Dict[str, Any], key: str, kind: str) -> Any:
    value = payload.get(key)
    if value is None:
        raise DecodeError(f"'{kind}' message without '{key}'")
    return value


def _decode_trade(payload: Dict[str, Any]) -> TradeMessage:
    body = _require(payload, "trade", MakerMessageType.TRADE.value)
    if not isinstance(body, dict):
        raise DecodeError("'trade' payload must be an object")
    try:
        return TradeMessage(trade=TradeState.from_wire(body))
    except ValidationError as exc:
        raise DecodeError(f"invalid trade payload: {exc}") from exc


def _decode_agg_trade(payload: Dict[str, Any]) -> AggTradeMessage:
    body = _require(payload, "binanceAggTrade", MakerMessageType.BINANCE_AGG_TRADE.value)
    if not isinstance(body, dict):
        raise DecodeError("'binanceAggTrade' payload must be an object")
    try:
        return AggTradeMessage(agg_trade=AggTrade.from_stream(body))
    except (KeyError, TypeError, ValueError, OverflowError) as exc:
        raise DecodeError(f"invalid agg trade payload: {exc}") from exc


def _decode_archived(payload: Dict[str, Any]) -> TradeArchivedMessage:
    trade_id = _require(payload, "tradeId", MakerMessageType.TRADE_ARCHIVED.value)
    if not isinstance(trade_id, str):
        raise DecodeError("'tradeId' must be a string")
    return TradeArchivedMessage(trade_id=trade_id)


_DECODERS = {
    MakerMessageType.PING.value: lambda payload: PingMessage(),
    MakerMessageType.TRADE.value: _decode_trade,
    MakerMessageType.BINANCE_AGG_TRADE.value: _decode_agg_trade,
    MakerMessageType.TRADE_ARCHIVED.value: _decode_archived,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def decode_message(raw: Union[str, bytes]) -> MakerMessage:
    """Decode one websocket frame.

    Unknown, missing or non-string ``messageType`` values decode to
    ``UnknownMessage`` rather than failing, so a newer server never breaks an
    older client.  Any other failure surfaces as ``DecodeError``.
    """
    try:
        payload = _parse_json(raw)
        message_type = payload.get("messageType")
        decoder = _DECODERS.get(message_type) if isinstance(message_type, str) else None
        if decoder is None:
            return UnknownMessage(message_type=message_type)
        return decoder(payload)
    except DecodeError:
        raise
    except Exception as exc:
        raise DecodeError(f"undecodable frame: {type(exc).__name__}: {exc}") from exc


class MessageRouter:
    """Applies decoded envelopes to the trade store and tick stream."""

    def __init__(
        self,
        store: TradeStore,
        agg_trades: EventStream[AggTrade],
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.store = store
        self.agg_trades = agg_trades
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    def dispatch(self, raw: Union[str, bytes]) -> MakerMessage:
        """Decode and handle one frame. ``DecodeError`` is left to the caller."""
        message = decode_message(raw)
        self.handle(message)
        return message

    def handle(self, message: MakerMessage) -> None:
        if isinstance(message, TradeMessage):
            self.store.upsert(message.trade)
        elif isinstance(message, AggTradeMessage):
            self.agg_trades.publish(message.agg_trade)
        elif isinstance(message, TradeArchivedMessage):
            self.store.remove(message.trade_id)
        elif isinstance(message, PingMessage):
            pass
        elif isinstance(message, UnknownMessage):
            self.logger.debug("⏭️ Ignoring unknown messageType %r", message.message_type)
        else:
            raise TypeError(f"unhandled message type: {type(message).__name__}")
