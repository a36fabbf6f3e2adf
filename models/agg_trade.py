# --------------------------------------------------------------------
# models/agg_trade.py
# Binance aggregate-trade tick, relayed by the maker server.  The stream
# record uses one-letter keys; AggTrade is the public shape handed to
# subscribers of the tick stream.
# --------------------------------------------------------------------
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict

_STREAM_KEYS = ("e", "E", "s", "a", "p", "q", "f", "l", "T", "m", "M")


@dataclass(frozen=True, slots=True)
class AggTrade:
    event_type: str
    event_time: int    # epoch-ms
    symbol: str
    trade_id: int
    price: float
    quantity: float
    first_trade_id: int
    last_trade_id: int
    trade_time: int    # epoch-ms
    buyer_maker: bool
    ignored: bool

    @classmethod
    def from_stream(cls, raw: Dict[str, Any]) -> "AggTrade":
        """Build from a stream record; raises KeyError/TypeError/ValueError on bad input."""
        missing = [k for k in _STREAM_KEYS if k not in raw]
        if missing:
            raise KeyError(f"agg trade missing keys: {missing}")
        return cls(
            event_type=str(raw["e"]),
            event_time=int(raw["E"]),
            symbol=str(raw["s"]),
            trade_id=int(raw["a"]),
            price=float(raw["p"]),
            quantity=float(raw["q"]),
            first_trade_id=int(raw["f"]),
            last_trade_id=int(raw["l"]),
            trade_time=int(raw["T"]),
            buyer_maker=bool(raw["m"]),
            ignored=bool(raw["M"]),
        )
