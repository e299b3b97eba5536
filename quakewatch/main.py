import signal
import logging

from queue import Queue
from threading import Event
from logging import getLogger

from quakewatch.settings import Settings
from quakewatch.jobs import Reader, DetectorProcessor, AlertNotifier, WebSocketSender


logger = getLogger(__name__)


def main():
    """
    Main function that initializes the earthquake detector.
    It sets up logging, loads settings, creates the threads that read samples from
    the serial port, run the detector, drive the alert outputs and stream the
    waveform over WebSocket. It also handles graceful shutdown on termination signals.
    """
    settings = Settings.load_settings()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    # Create a global shutdown event
    shutdown_event = Event()

    # Define a signal handler for systemd (SIGTERM)
    def handle_exit(sig, frame):
        logger.debug("Exit signal %s received. Shutting down...", sig)
        shutdown_event.set()

    signal.signal(signal.SIGTERM, handle_exit)
    signal.signal(signal.SIGINT, handle_exit)

    # Create queues for communication between jobs
    reading_queue = Queue()
    notifier_queue = Queue()
    websocket_queue = Queue()
    command_queue = Queue()

    # Create and start the Reader job thread (reads lines from serial, writes back commands)
    reader_job = Reader(
        settings,
        [reading_queue],
        command_queue,
        shutdown_event
    )
    reader_job.start()

    # Create and start the DetectorProcessor job thread (owns the seismic engine)
    detector_job = DetectorProcessor(
        settings,
        reading_queue,
        [notifier_queue, websocket_queue],
        shutdown_event
    )
    detector_job.start()

    # Create and start the AlertNotifier job thread (buzzer and alert commands)
    notifier_job = AlertNotifier(
        settings,
        notifier_queue,
        command_queue,
        shutdown_event
    )
    notifier_job.start()

    # Create and start the WebSocketSender job thread (streams the waveform)
    websocket_job = WebSocketSender(
        settings,
        websocket_queue,
        shutdown_event
    )
    websocket_job.start()

    # Gracefully stop all threads
    reader_job.join()

    # Wait for all threads to finish
    detector_job.join()
    notifier_job.join()
    websocket_job.join()

    logger.debug("All threads stopped and the main script has finished.")


if __name__ == "__main__":
    main()
