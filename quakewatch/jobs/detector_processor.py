from threading import Thread, Event
from queue import Empty, Queue
from logging import getLogger

from quakewatch.settings import Settings
from quakewatch.structs.reading import Reading
from quakewatch.utils.seismic_engine import InvalidSample

logger = getLogger(__name__)


class DetectorProcessor(Thread):
    """
    Thread that owns the seismic engine. It feeds every incoming reading to the
    engine, logs alert transitions and publishes a consistent state snapshot to
    the downstream queues after each sample.
    """
    def __init__(
        self,
        settings: Settings,
        data_queue: Queue,
        output_queues: list[Queue],
        shutdown_event: Event
    ):
        super().__init__()
        self.data_queue = data_queue
        self.output_queues = output_queues
        self.shutdown_event = shutdown_event

        self.engine = settings.detector.create_engine()
        self.last_trigger = False
        self.was_calibrated = False

    def run(self):
        logger.info("Detector Processor started. Calibrating... (Keep sensor still)")

        while not self.shutdown_event.is_set():
            try:
                reading = self.data_queue.get(timeout=0.5)
                self._handle_reading(reading)
                self.data_queue.task_done()

            except Empty:
                continue
            except Exception:
                logger.exception("Error in Detector Processor loop")

        logger.info("Detector Processor stopped.")

    def _handle_reading(self, reading: Reading):
        try:
            self.engine.ingest(reading.value)
        except InvalidSample as e:
            logger.warning("Rejected sample: %s", e)
            return

        state = self.engine.snapshot(reading.timestamp)

        if state.calibrated and not self.was_calibrated:
            logger.info("Calibration complete. Baseline: %.2fg", state.baseline)
            self.was_calibrated = True

        # handle State Changes (Edge Detection)
        if state.alert_active and not self.last_trigger:
            logger.warning(
                "EARTHQUAKE DETECTED: deviation %.2fg exceeds threshold!",
                state.current_deviation
            )
            self.last_trigger = True

        elif not state.alert_active and self.last_trigger:
            logger.info("Alert cleared: Signal returned to baseline levels.")
            self.last_trigger = False

        for q in self.output_queues:
            q.put(state)
