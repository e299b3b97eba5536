import asyncio
import json
from queue import Queue
from threading import Event

from quakewatch.jobs import websocket_sender
from quakewatch.jobs.websocket_sender import WebSocketSender
from quakewatch.settings import Settings
from quakewatch.structs.engine_state import EngineState
from quakewatch.structs.enums import EngineMode


class FakeClient:
    def __init__(self, on_send=None):
        self.messages = []
        self.on_send = on_send

    async def send(self, message: str) -> None:
        self.messages.append(json.loads(message))
        if self.on_send:
            self.on_send(self)


class BrokenClient:
    async def send(self, message: str) -> None:
        raise ConnectionError("client went away")


def _make_sender(broadcast_every: int = 1) -> WebSocketSender:
    settings = Settings.get_default_settings()
    settings.broadcast_every = broadcast_every
    return WebSocketSender(settings, Queue(), Event())


def _state(value: float) -> EngineState:
    return EngineState(
        mode=EngineMode.MONITORING,
        baseline=0.0,
        window=(value,),
        alert_active=value > 0.5,
        peak_magnitude=value,
        last_value=value,
        timestamp=value
    )


def test_broadcast_every_nth_state_and_stop_on_shutdown() -> None:
    sender = _make_sender(broadcast_every=2)

    def stop_after_two(client: FakeClient) -> None:
        if len(client.messages) == 2:
            sender.shutdown_event.set()

    client = FakeClient(on_send=stop_after_two)
    sender._clients.add(client)
    for value in (0.1, 0.2, 0.3, 0.4):
        sender.state_queue.put(_state(value))

    asyncio.run(asyncio.wait_for(sender._producer_loop(), timeout=10))

    assert [m["window"] for m in client.messages] == [[0.2], [0.4]]
    assert all(m["threshold"] == 0.5 for m in client.messages)


def test_producer_loop_exits_when_idle_and_shut_down() -> None:
    sender = _make_sender()
    sender.shutdown_event.set()

    asyncio.run(asyncio.wait_for(sender._producer_loop(), timeout=5))


def test_dead_clients_are_dropped() -> None:
    sender = _make_sender()
    alive, dead = FakeClient(), BrokenClient()
    sender._clients.update({alive, dead})

    asyncio.run(sender._broadcast(json.dumps({"ok": True})))

    assert alive.messages == [{"ok": True}]
    assert sender._clients == {alive}


def test_broadcast_without_clients_is_noop() -> None:
    sender = _make_sender()
    asyncio.run(sender._broadcast("{}"))
    assert sender._clients == set()


def test_server_failure_sets_shutdown(monkeypatch) -> None:
    def fail_to_bind(*args, **kwargs):
        raise OSError("address already in use")

    monkeypatch.setattr(websocket_sender.websockets, "serve", fail_to_bind)
    sender = _make_sender()

    sender.run()

    assert sender.shutdown_event.is_set()
