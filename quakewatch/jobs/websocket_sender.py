from threading import Thread, Event
from queue import Queue, Empty
from logging import getLogger
import asyncio

import websockets

from quakewatch.settings import Settings
from quakewatch.utils.waveform import build_message

logger = getLogger(__name__)


class WebSocketSender(Thread):
    """Thread that serves a WebSocket endpoint to broadcast the detector state
    in real-time to connected chart clients. Each message carries the baseline,
    the sliding window, the alert flag, the peak magnitude and the waveform points.
    """
    def __init__(
        self,
        settings: Settings,
        state_queue: Queue,
        shutdown_event: Event
    ):
        super().__init__(daemon=True)
        self.state_queue = state_queue
        self.shutdown_event = shutdown_event
        self.host = settings.websocket_host
        self.port = settings.websocket_port
        self.threshold = settings.detector.detection_threshold
        self.broadcast_every = settings.broadcast_every

        self._clients = set()
        self._counter = 0

    def run(self):
        try:
            asyncio.run(self._main_loop())
        except Exception:
            logger.exception("WebSocket Server exception")
            # nobody would drain the state queue anymore
            self.shutdown_event.set()
        finally:
            logger.info("WebSocket Server stopped.")

    async def _main_loop(self):
        async with websockets.serve(self._handle_connection, self.host, self.port):
            logger.info("WebSocket Server started on ws://%s:%d", self.host, self.port)
            await self._producer_loop()

    async def _handle_connection(self, websocket):
        self._clients.add(websocket)
        try:
            await websocket.wait_closed()
        finally:
            self._clients.discard(websocket)

    async def _producer_loop(self):
        loop = asyncio.get_running_loop()

        while not self.shutdown_event.is_set():
            try:
                state = await loop.run_in_executor(None, self.state_queue.get, True, 0.5)
                self._counter += 1

                if self._counter % self.broadcast_every == 0:
                    await self._broadcast(build_message(state, self.threshold))

            except Empty:
                continue
            except Exception:
                logger.exception("Error in WebSocket producer loop")

    async def _broadcast(self, message):
        if not self._clients:
            return

        dead_clients = set()
        send_tasks = [self._safe_send(ws, message, dead_clients) for ws in self._clients]
        if send_tasks:
            await asyncio.gather(*send_tasks)

        if dead_clients:
            self._clients.difference_update(dead_clients)

    async def _safe_send(self, websocket, message, dead_clients):
        try:
            await websocket.send(message)
        except Exception:
            dead_clients.add(websocket)
