def validate_config(config: dict):
    maker = config.get("MAKER")
    if not isinstance(maker, dict):
        raise TypeError("MAKER must be a dictionary.")

    host = maker.get("host")
    if not isinstance(host, str) or not host.strip():
        raise ValueError("MAKER.host must be a non-empty string (e.g. 127.0.0.1:6045).")
    if "://" in host or "/" in host:
        raise ValueError(f"MAKER.host must be host[:port] without scheme or path, got {host!r}.")

    ws_path = maker.get("ws_path", "/ws")
    if not isinstance(ws_path, str) or not ws_path.startswith("/"):
        raise ValueError(f"MAKER.ws_path must start with '/', got {ws_path!r}.")

    for key in ("RECONNECT_DELAY", "WS_IDLE_TIMEOUT", "HTTP_TIMEOUT"):
        value = config.get(key, 0)
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise TypeError(f"{key} must be a number.")
        if value < 0:
            raise ValueError(f"{key} must be >= 0.")

    ping = config.get("WS_PING_INTERVAL")
    if ping is not None and (not isinstance(ping, (int, float)) or ping <= 0):
        raise ValueError("WS_PING_INTERVAL must be a positive number when set.")
