import argparse
import asyncio
import logging
from typing import Mapping, Optional, Sequence

from core.initialization import initialize_components, load_configuration
from models.agg_trade import AggTrade
from models.trade_state import TradeState
from utils.logger import setup_logger


class SnapshotLogger:
    """Logs one summary line per published trade snapshot."""

    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger
        self._last: Mapping[str, TradeState] = {}

    def __call__(self, snapshot: Mapping[str, TradeState]) -> None:
        changed = sorted(
            trade_id for trade_id, trade in snapshot.items()
            if self._last.get(trade_id) != trade
        )
        removed = sorted(set(self._last) - set(snapshot))
        open_count = sum(1 for trade in snapshot.values() if trade.status.is_open)
        self.logger.info(
            "📊 Trades: %d | Open: %d | Changed: %s | Archived: %s",
            len(snapshot),
            open_count,
            ", ".join(changed) or "-",
            ", ".join(removed) or "-",
        )
        self._last = snapshot


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Follow live trades on a maker server.")
    parser.add_argument("--env", default="maker.env", help="path to .env file (default: maker.env)")
    parser.add_argument("--host", help="maker server host[:port], overrides MAKER_HOST")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING ...")
    return parser.parse_args(argv)


async def run_client(args: argparse.Namespace) -> None:
    """
    Entrypoint coroutine: wire components, connect, and follow the trade
    stream until cancelled.
    """
    config = load_configuration(args.env)
    if args.host:
        config["MAKER"]["host"] = args.host

    if args.log_level:
        logger = setup_logger("maker", level=args.log_level)
    else:
        logger = setup_logger("maker")
    components = initialize_components(config, logger=logger)

    store = components["trade_store"]
    store.subscribe(SnapshotLogger(logger))

    def on_agg_trade(tick: AggTrade) -> None:
        logger.debug("tick %s %.8f x %.8f", tick.symbol, tick.price, tick.quantity)

    components["agg_trades"].subscribe(on_agg_trade)

    websocket = components["websocket"]
    api = components["api"]
    websocket.connect()
    try:
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        logger.info("Client cancelled – shutting down")
    finally:
        await websocket.shutdown()
        await api.close()


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    try:
        asyncio.run(run_client(args))
    except KeyboardInterrupt:
        print("\n🛑 Stopped by user.")


if __name__ == "__main__":
    main()
