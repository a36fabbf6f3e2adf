import asyncio
import json

import pytest
from websockets.exceptions import ConnectionClosedOK

from core.message_handler import MessageRouter
from modules.maker_socket import MakerWebSocket
from modules.reconnect_policy import ReconnectPolicy
from modules.trade_store import TradeStore
from utils.event_bus import EventStream

URL = "ws://127.0.0.1:6045/ws"

# ------------------------- Fakes ------------------------- #

class FakeConnection:
    """Serves queued frames, then closes cleanly, raises, or blocks."""

    def __init__(self, frames=(), error=None, hold=False):
        self.frames = list(frames)
        self.error = error
        self.hold = hold
        self.close_calls = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def recv(self):
        if self.frames:
            return self.frames.pop(0)
        if self.hold:
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error
        raise ConnectionClosedOK(None, None)

    async def close(self):
        self.close_calls += 1


class RefusedConnection:
    def __init__(self, error):
        self.error = error

    async def __aenter__(self):
        raise self.error

    async def __aexit__(self, *exc):
        return False


class FakeConnector:
    """Stands in for websockets.connect; once scripted outcomes run out it holds."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []
        self.times = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        self.times.append(asyncio.get_running_loop().time())
        outcome = self.outcomes.pop(0) if self.outcomes else FakeConnection(hold=True)
        if isinstance(outcome, Exception):
            return RefusedConnection(outcome)
        return outcome


async def wait_until(predicate, timeout=2.0):
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.005)
    await asyncio.wait_for(_poll(), timeout)


def trade_frame(local_id, status="NEW"):
    return json.dumps({
        "messageType": "trade",
        "trade": {"LocalID": local_id, "Symbol": "ETHBTC", "Status": status},
    })

# ------------------------- Fixtures ------------------------- #

@pytest.fixture
def store():
    return TradeStore()


@pytest.fixture
def router(store):
    return MessageRouter(store, EventStream())


def make_socket(router, connector, delay=1.0, **kwargs):
    return MakerWebSocket(
        URL, router, ReconnectPolicy(delay=delay), connector=connector, **kwargs
    )

# ------------------------- Tests ------------------------- #

@pytest.mark.asyncio
async def test_frames_processed_in_order_and_bad_frame_skipped(router, store, caplog):
    conn = FakeConnection(
        frames=[trade_frame("t1"), "{not json", trade_frame("t1", "WATCHING"), trade_frame("t2")],
        hold=True,
    )
    connector = FakeConnector(conn)
    ws = make_socket(router, connector)

    ws.connect()
    await wait_until(lambda: len(store) == 2)

    assert store.get("t1").status.value == "WATCHING"
    assert ws.is_open
    assert len(connector.calls) == 1
    assert "failed to parse maker socket frame" in caplog.text
    await ws.shutdown()


@pytest.mark.asyncio
async def test_deeply_nested_frame_does_not_drop_connection(router, store, caplog):
    conn = FakeConnection(frames=[trade_frame("t1"), "[" * 100000, trade_frame("t2")], hold=True)
    connector = FakeConnector(conn)
    ws = make_socket(router, connector)

    ws.connect()
    await wait_until(lambda: len(store) == 2)

    assert set(store.snapshot) == {"t1", "t2"}
    assert len(connector.calls) == 1
    assert ws.is_open
    assert conn.close_calls == 0
    assert "failed to parse maker socket frame" in caplog.text
    await ws.shutdown()


@pytest.mark.asyncio
async def test_clean_close_reconnects_immediately_and_open_resets(router):
    connector = FakeConnector(FakeConnection())
    ws = make_socket(router, connector, delay=5.0)

    ws.connect()
    await wait_until(lambda: len(connector.calls) == 2 and ws.is_open)

    assert connector.times[1] - connector.times[0] < 1.0
    assert ws.policy.failures == 0
    await ws.shutdown()


@pytest.mark.asyncio
async def test_repeated_failures_back_off_after_two_immediate_retries(router):
    connector = FakeConnector(OSError("refused"), OSError("refused"), OSError("refused"))
    ws = make_socket(router, connector, delay=0.2)

    ws.connect()
    await wait_until(lambda: len(connector.calls) == 4 and ws.is_open)

    t = connector.times
    assert t[2] - t[0] < 0.1
    assert t[3] - t[2] >= 0.15
    assert ws.policy.failures == 0
    await ws.shutdown()


@pytest.mark.asyncio
async def test_exactly_one_reconnect_per_close(router):
    connector = FakeConnector(OSError("refused"), OSError("refused"), OSError("refused"))
    ws = make_socket(router, connector, delay=0.3)

    ws.connect()
    await wait_until(lambda: len(connector.calls) == 3)
    # third close waits for the fixed delay; nothing else may sneak in
    await asyncio.sleep(0.1)
    assert len(connector.calls) == 3
    assert ws.policy.failures == 3
    await ws.shutdown()


@pytest.mark.asyncio
async def test_error_force_closes_then_reconnects(router, store, caplog):
    broken = FakeConnection(frames=[trade_frame("t1")], error=OSError("connection reset"))
    connector = FakeConnector(broken)
    ws = make_socket(router, connector)

    ws.connect()
    await wait_until(lambda: len(connector.calls) == 2 and ws.is_open)

    assert broken.close_calls == 1
    assert "connection reset" in caplog.text
    # state survives the reconnect
    assert "t1" in store
    await ws.shutdown()


@pytest.mark.asyncio
async def test_idle_timeout_treats_silence_as_error(router):
    silent = FakeConnection(hold=True)
    connector = FakeConnector(silent)
    ws = make_socket(router, connector, idle_timeout=0.05)

    ws.connect()
    await wait_until(lambda: len(connector.calls) >= 2)

    assert silent.close_calls == 1
    await ws.shutdown()


@pytest.mark.asyncio
async def test_connect_is_idempotent(router):
    connector = FakeConnector()
    ws = make_socket(router, connector, ping_interval=20)

    ws.connect()
    ws.connect()
    await wait_until(lambda: ws.is_open)
    ws.connect()
    await asyncio.sleep(0.02)

    assert len(connector.calls) == 1
    assert connector.calls[0] == (URL, {"ping_interval": 20})
    await ws.shutdown()


@pytest.mark.asyncio
async def test_shutdown_stops_reconnecting(router):
    connector = FakeConnector()
    ws = make_socket(router, connector)

    ws.connect()
    await wait_until(lambda: ws.is_open)
    await ws.shutdown()
    await asyncio.sleep(0.05)

    assert not ws.is_open
    assert len(connector.calls) == 1
    ws.connect()
    await asyncio.sleep(0.02)
    assert len(connector.calls) == 1


@pytest.mark.asyncio
async def test_shutdown_cancels_pending_delayed_reconnect(router):
    connector = FakeConnector(OSError("a"), OSError("b"), OSError("c"))
    ws = make_socket(router, connector, delay=0.1)

    ws.connect()
    await wait_until(lambda: len(connector.calls) == 3)
    await ws.shutdown()
    await asyncio.sleep(0.2)

    assert len(connector.calls) == 3
