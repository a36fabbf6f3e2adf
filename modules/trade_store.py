"""
trade_store.py
--------------
Owns the one authoritative map of trades known to the client and publishes a
fresh read-only copy of it after every mutation.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional

from models.trade_state import TradeState
from utils.event_bus import ReplayLastStream

TradeSnapshot = Mapping[str, TradeState]


class TradeStore:
    """Keyed trade snapshot with replay-last change notification."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self._trades: Dict[str, TradeState] = {}
        self.updates: ReplayLastStream[TradeSnapshot] = ReplayLastStream(
            self._freeze(), name="trades"
        )

    # -------------------------------------------------------------------- #
    def upsert(self, trade: TradeState) -> None:
        """Insert or wholesale-replace the record at ``trade.local_id``."""
        previous = self._trades.get(trade.local_id)
        self._trades[trade.local_id] = trade
        if previous is None:
            self.logger.debug("Trade %s added (%s)", trade.local_id, trade.status.value)
        elif previous.status is not trade.status:
            self.logger.debug(
                "Trade %s %s -> %s", trade.local_id, previous.status.value, trade.status.value
            )
        self._publish()

    def remove(self, trade_id: str) -> None:
        """Drop ``trade_id``; unknown ids are ignored but still publish."""
        if self._trades.pop(trade_id, None) is None:
            self.logger.debug("Archive for unknown trade %s ignored", trade_id)
        else:
            self.logger.debug("Trade %s archived", trade_id)
        self._publish()

    # -------------------------------------------------------------------- #
    @property
    def snapshot(self) -> TradeSnapshot:
        return self.updates.value

    def get(self, trade_id: str) -> Optional[TradeState]:
        return self._trades.get(trade_id)

    def subscribe(self, fn: Callable[[TradeSnapshot], object]) -> Callable[[], None]:
        return self.updates.subscribe(fn)

    def __len__(self) -> int:
        return len(self._trades)

    def __contains__(self, trade_id: object) -> bool:
        return trade_id in self._trades

    # -------------------------------------------------------------------- #
    def _freeze(self) -> TradeSnapshot:
        return MappingProxyType(dict(self._trades))

    def _publish(self) -> None:
        self.updates.publish(self._freeze())
