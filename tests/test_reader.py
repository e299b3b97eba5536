from queue import Queue
from threading import Event

from quakewatch.jobs.reader import MAX_LINE_LENGTH, Reader
from quakewatch.settings import Settings


class FakeSerial:
    def __init__(self):
        self.written = []

    def write(self, data: bytes) -> None:
        self.written.append(data)


def _make_reader(*queues: Queue) -> Reader:
    return Reader(Settings.get_default_settings(), list(queues), Queue(), Event())


def _values(queue: Queue) -> list[float]:
    values = []
    while not queue.empty():
        values.append(queue.get_nowait().value)
    return values


def test_valid_lines_are_fanned_out() -> None:
    first, second = Queue(), Queue()
    reader = _make_reader(first, second)

    reader._feed(b"0.42\r\n")

    assert _values(first) == [0.42]
    assert _values(second) == [0.42]


def test_line_split_across_reads_is_joined() -> None:
    queue = Queue()
    reader = _make_reader(queue)

    reader._feed(b"0.")
    assert queue.empty()

    reader._feed(b"98\n")
    assert _values(queue) == [0.98]
    assert reader.buffer == bytearray()


def test_several_lines_in_one_read() -> None:
    queue = Queue()
    reader = _make_reader(queue)

    reader._feed(b"1.0\r\n1.1\r\n1.")
    assert _values(queue) == [1.0, 1.1]

    reader._feed(b"2\r\n")
    assert _values(queue) == [1.2]


def test_invalid_lines_are_dropped() -> None:
    queue = Queue()
    reader = _make_reader(queue)

    reader._feed(b"garbage\r\n\r\n0.5\r\n")

    assert _values(queue) == [0.5]


def test_unterminated_noise_is_discarded() -> None:
    queue = Queue()
    reader = _make_reader(queue)

    reader._feed(b"9" * (MAX_LINE_LENGTH + 1))
    assert reader.buffer == bytearray()

    reader._feed(b"0.1\n")
    assert _values(queue) == [0.1]


def test_pending_commands_are_written() -> None:
    reader = _make_reader()
    ser = FakeSerial()
    reader.command_queue.put(b"A")
    reader.command_queue.put(b"N")

    reader._flush_commands(ser)

    assert ser.written == [b"A", b"N"]
    assert reader.command_queue.empty()


def test_missing_port_sets_shutdown() -> None:
    settings = Settings.get_default_settings()
    settings.serial.port = "/dev/does-not-exist-quakewatch"
    reader = Reader(settings, [], Queue(), Event())

    reader.run()

    assert reader.shutdown_event.is_set()
