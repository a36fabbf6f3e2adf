from typing import Any, Dict, Optional


class ConfigManager:
    def __init__(self, config: Dict[str, Any]):
        self.config = config

    def _maker(self) -> Dict[str, Any]:
        return self.config.get("MAKER", {}) or {}

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    def get_host(self) -> str:
        return self._maker().get("host") or "127.0.0.1:6045"

    def is_secure(self) -> bool:
        return bool(self._maker().get("secure", False))

    def get_ws_url(self) -> str:
        scheme = "wss" if self.is_secure() else "ws"
        path = self._maker().get("ws_path") or "/ws"
        return f"{scheme}://{self.get_host()}{path}"

    def get_api_base_url(self) -> str:
        scheme = "https" if self.is_secure() else "http"
        return f"{scheme}://{self.get_host()}"

    def get_reconnect_delay(self) -> float:
        return float(self.config.get("RECONNECT_DELAY", 1.0))

    def get_idle_timeout(self) -> float:
        return float(self.config.get("WS_IDLE_TIMEOUT", 0) or 0)

    def get_ping_interval(self) -> Optional[float]:
        value = self.config.get("WS_PING_INTERVAL")
        return None if value is None else float(value)

    def get_http_timeout(self) -> float:
        return float(self.config.get("HTTP_TIMEOUT", 10))
