from threading import Thread, Event
from queue import Empty, Queue
from logging import getLogger

from gpiozero.pins.mock import MockFactory
from gpiozero.exc import BadPinFactory
from gpiozero import Buzzer, Device

from quakewatch.settings import Settings
from quakewatch.structs.engine_state import EngineState

logger = getLogger(__name__)


class AlertNotifier(Thread):
    """
    Thread that turns engine states into external signals: a single-character
    command for the sensor board (alert or normal) and a buzzer that sounds
    while the alert is active.
    """
    def __init__(
        self,
        settings: Settings,
        state_queue: Queue,
        command_queue: Queue,
        shutdown_event: Event
    ):
        super().__init__()
        self.state_queue = state_queue
        self.command_queue = command_queue
        self.shutdown_event = shutdown_event

        self.alert_command = settings.serial.alert_command.encode("ascii")
        self.normal_command = settings.serial.normal_command.encode("ascii")

        try:
            self.buzzer = Buzzer(settings.buzzer_pin)
        except BadPinFactory:
            logger.warning("No GPIO available, using a mock buzzer")
            Device.pin_factory = MockFactory()
            self.buzzer = Buzzer(settings.buzzer_pin)

    def run(self):
        logger.info("Alert Notifier started.")

        try:
            while not self.shutdown_event.is_set():
                try:
                    state = self.state_queue.get(timeout=0.5)
                    self._notify(state)
                    self.state_queue.task_done()

                except Empty:
                    continue
                except Exception:
                    logger.exception("Error in Alert Notifier loop")
        finally:
            self.buzzer.off()
            self.buzzer.close()
            logger.info("Alert Notifier stopped.")

    def _notify(self, state: EngineState):
        if state.alert_active:
            self.buzzer.on()
            self.command_queue.put(self.alert_command)
        else:
            self.buzzer.off()
            self.command_queue.put(self.normal_command)
