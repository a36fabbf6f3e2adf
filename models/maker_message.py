# --------------------------------------------------------------------
# models/maker_message.py
# Decoded inbound messages from the maker websocket, one class per
# ``messageType``.  MakerMessage is the closed union the router matches on.
# --------------------------------------------------------------------
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from models.agg_trade import AggTrade
from models.trade_state import TradeState


class MakerMessageType(str, Enum):
    PING = "ping"
    TRADE = "trade"
    BINANCE_AGG_TRADE = "binanceAggTrade"
    TRADE_ARCHIVED = "tradeArchived"


@dataclass(frozen=True)
class PingMessage:
    pass


@dataclass(frozen=True)
class TradeMessage:
    trade: TradeState


@dataclass(frozen=True)
class AggTradeMessage:
    agg_trade: AggTrade


@dataclass(frozen=True)
class TradeArchivedMessage:
    trade_id: str


@dataclass(frozen=True)
class UnknownMessage:
    """A ``messageType`` this client does not know (or none at all); kept for logging only."""
    message_type: Any


MakerMessage = Union[
    PingMessage,
    TradeMessage,
    AggTradeMessage,
    TradeArchivedMessage,
    UnknownMessage,
]
