"""
core/initialization.py
----------------------
Loads configuration from .env and wires the runtime components (trade store,
tick stream, router, websocket, command client) with simple
dependency-injection (DI) overrides.  Nothing here is a module-level
singleton: every caller gets its own set of components.
"""

from __future__ import annotations

import os
import logging
from typing import Dict, Optional

from dotenv import load_dotenv

from core.message_handler import MessageRouter
from models.agg_trade import AggTrade
from modules.maker_api import MakerApi
from modules.maker_socket import MakerWebSocket
from modules.reconnect_policy import ReconnectPolicy
from modules.trade_store import TradeStore
from utils.config_manager import ConfigManager
from utils.config_validator import validate_config
from utils.event_bus import EventStream
from utils.logger import setup_logger

_TRUTHY = {"1", "true", "yes", "on"}


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_configuration(env_path: str = "maker.env") -> Dict:
    """
    Load settings from an .env-style file (plus the process environment) and
    return a structured config dict.
    """
    log = logging.getLogger(__name__)
    load_dotenv(dotenv_path=env_path)

    conf: Dict[str, object] = {
        "MAKER": {
            "host": os.getenv("MAKER_HOST", "127.0.0.1:6045").strip(),
            "secure": os.getenv("MAKER_SECURE", "false").strip().lower() in _TRUTHY,
            "ws_path": os.getenv("MAKER_WS_PATH", "/ws").strip() or "/ws",
        },
        "RECONNECT_DELAY": _env_float("MAKER_RECONNECT_DELAY", 1.0),
        "WS_IDLE_TIMEOUT": _env_float("MAKER_WS_IDLE_TIMEOUT", 0.0),
        "WS_PING_INTERVAL": _env_float("MAKER_WS_PING_INTERVAL", None),
        "HTTP_TIMEOUT": _env_float("MAKER_HTTP_TIMEOUT", 10.0),
    }

    log.debug("Parsed MAKER: %s", conf["MAKER"])
    log.debug("Reconnect delay: %ss, idle timeout: %ss",
              conf["RECONNECT_DELAY"], conf["WS_IDLE_TIMEOUT"])
    return conf


def initialize_components(
    config: Dict,
    overrides: Optional[Dict[str, object]] = None,
    logger: Optional[logging.Logger] = None,
) -> Dict[str, object]:
    """
    Construct and wire together all runtime components (supports DI via overrides).

    Keys you can override:
    {"logger", "trade_store", "agg_trades", "router", "policy", "websocket", "api"}
    """
    overrides = overrides or {}
    validate_config(config)
    cfg = ConfigManager(config)

    # 1) Logger
    logger = overrides.get("logger") or logger or setup_logger("maker")

    # 2) State + tick stream
    trade_store = overrides.get("trade_store")
    if trade_store is None:
        trade_store = TradeStore(logger=logger.getChild("trades"))
    agg_trades = overrides.get("agg_trades")
    if agg_trades is None:
        agg_trades = EventStream[AggTrade]("aggTrades")

    # 3) Router
    router = overrides.get("router") or MessageRouter(
        trade_store, agg_trades, logger=logger.getChild("router")
    )

    # 4) Websocket with its reconnect policy
    policy = overrides.get("policy") or ReconnectPolicy(delay=cfg.get_reconnect_delay())
    websocket = overrides.get("websocket")
    if websocket is None:
        websocket = MakerWebSocket(
            cfg.get_ws_url(),
            router,
            policy,
            logger=logger.getChild("ws"),
            idle_timeout=cfg.get_idle_timeout(),
            ping_interval=cfg.get_ping_interval(),
        )

    # 5) Command client
    api = overrides.get("api") or MakerApi(
        cfg.get_api_base_url(), logger=logger.getChild("api"), timeout=cfg.get_http_timeout()
    )

    logger.info("✅ Trade store initialized.")
    logger.info("✅ Websocket initialized: %s", cfg.get_ws_url())
    logger.info("✅ Command client initialized: %s", cfg.get_api_base_url())

    return {
        "logger": logger,
        "trade_store": trade_store,
        "agg_trades": agg_trades,
        "router": router,
        "policy": policy,
        "websocket": websocket,
        "api": api,
    }
