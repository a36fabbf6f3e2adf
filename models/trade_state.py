"""
models/trade_state.py
---------------------
Server-side trade record as pushed over the maker websocket.  The wire uses
PascalCase keys (``LocalID``, ``BuyOrder.Price`` ...); attributes are
snake_case with the wire name as alias.  Records are frozen: an update from
the server replaces the whole record.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class TradeStatus(str, Enum):
    NEW = "NEW"
    FAILED = "FAILED"
    PENDING_BUY = "PENDING_BUY"
    WATCHING = "WATCHING"
    PENDING_SELL = "PENDING_SELL"
    DONE = "DONE"
    CANCELED = "CANCELED"

    @property
    def is_open(self) -> bool:
        return self not in _CLOSED_STATUSES


_CLOSED_STATUSES = frozenset({TradeStatus.FAILED, TradeStatus.DONE, TradeStatus.CANCELED})


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class BuyOrder(_WireModel):
    price: float = Field(0.0, alias="Price")
    quantity: float = Field(0.0, alias="Quantity")


class StopLoss(_WireModel):
    enabled: bool = Field(False, alias="Enabled")
    percent: float = Field(0.0, alias="Percent")
    triggered: bool = Field(False, alias="Triggered")


class TrailingStop(_WireModel):
    enabled: bool = Field(False, alias="Enabled")
    percent: float = Field(0.0, alias="Percent")
    deviation: float = Field(0.0, alias="Deviation")


class TradeState(_WireModel):
    local_id: str = Field(..., alias="LocalID", min_length=1)
    symbol: str = Field("", alias="Symbol")
    status: TradeStatus = Field(..., alias="Status")
    open_time: Optional[datetime] = Field(None, alias="OpenTime")
    close_time: Optional[datetime] = Field(None, alias="CloseTime")
    fee: float = Field(0.0, alias="Fee")

    buy_order: BuyOrder = Field(default_factory=BuyOrder, alias="BuyOrder")
    buy_fill_quantity: float = Field(0.0, alias="BuyFillQuantity")
    average_buy_price: float = Field(0.0, alias="AverageBuyPrice")
    buy_cost: float = Field(0.0, alias="BuyCost")

    sell_fill_quantity: float = Field(0.0, alias="SellFillQuantity")
    average_sell_price: float = Field(0.0, alias="AverageSellPrice")
    sell_cost: float = Field(0.0, alias="SellCost")

    stop_loss: StopLoss = Field(default_factory=StopLoss, alias="StopLoss")
    trailing_stop: TrailingStop = Field(default_factory=TrailingStop, alias="TrailingStop")

    effective_buy_price: float = Field(0.0, alias="EffectiveBuyPrice")
    profit: float = Field(0.0, alias="Profit")
    profit_percent: float = Field(0.0, alias="ProfitPercent")
    last_buy_status: str = Field("", alias="LastBuyStatus")
    # accepted in either spelling
    last_sell_status: str = Field(
        "",
        alias="LastSellStatus",
        validation_alias=AliasChoices("LastSellStatus", "LastSellstatus"),
    )

    @field_validator("open_time", "close_time", mode="before")
    @classmethod
    def empty_time_is_none(cls, v):
        # the server sends "" for a trade that has not opened/closed yet
        if v == "":
            return None
        return v

    @classmethod
    def from_wire(cls, payload: dict) -> "TradeState":
        return cls.model_validate(payload)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
