from threading import Thread, Event
from queue import Queue, Empty
from logging import getLogger

import serial

from quakewatch.settings import Settings
from quakewatch.structs.reading import Reading

logger = getLogger(__name__)


LINE_TERMINATOR = b"\n"
MAX_LINE_LENGTH = 64  # longer runs without a terminator are noise


class Reader(Thread):
    def __init__(
        self,
        settings: Settings,
        queues: list[Queue],
        command_queue: Queue,
        shutdown_event: Event
    ):
        """
        Thread that continuously reads magnitude lines from the serial port,
        parses them, and distributes the readings to queues. Alert commands
        queued by the notifier are written back on the same port.
        """
        super().__init__()
        self.settings = settings
        self.queues = queues
        self.command_queue = command_queue
        self.shutdown_event = shutdown_event
        self.port = settings.serial.port
        self.baudrate = settings.serial.baudrate

        # Bytes received but not yet terminated by a newline
        self.buffer = bytearray()

    def run(self):
        try:
            with serial.Serial(self.port, self.baudrate, timeout=self.settings.serial.timeout) as ser:
                logger.info("Connected to sensor on %s at %d", self.port, self.baudrate)
                logger.info("Earthquake detector initialized. Waiting for data...")

                while not self.shutdown_event.is_set():
                    # send any pending alert/normal commands
                    self._flush_commands(ser)

                    # read available data, blocking up to the timeout for one byte
                    chunk = ser.read(ser.in_waiting or 1)
                    if chunk:
                        self._feed(chunk)

        except Exception:
            logger.exception("Serial Reader exception")
        finally:
            logger.info("Serial Reader stopped.")
            self.shutdown_event.set()

    def _feed(self, chunk: bytes):
        self.buffer.extend(chunk)

        # process buffer for complete lines only
        while True:
            end = self.buffer.find(LINE_TERMINATOR)
            if end < 0:
                break

            line = bytes(self.buffer[:end])
            del self.buffer[:end + 1]
            self._handle_line(line)

        if len(self.buffer) > MAX_LINE_LENGTH:
            logger.warning("Discarding %d bytes without line terminator", len(self.buffer))
            self.buffer.clear()

    def _handle_line(self, line: bytes):
        try:
            reading = Reading.from_line(line)
        except ValueError:
            logger.warning("Invalid data: %r", line)
            return

        for q in self.queues:
            q.put(reading)

    def _flush_commands(self, ser: serial.Serial):
        while True:
            try:
                command = self.command_queue.get_nowait()
            except Empty:
                break

            ser.write(command)
            self.command_queue.task_done()
