from queue import Queue
from threading import Event

import pytest
from gpiozero import Device
from gpiozero.pins.mock import MockFactory

from quakewatch.jobs.alert_notifier import AlertNotifier
from quakewatch.settings import Settings
from quakewatch.structs.engine_state import EngineState
from quakewatch.structs.enums import EngineMode


@pytest.fixture
def notifier():
    Device.pin_factory = MockFactory()
    notifier = AlertNotifier(Settings.get_default_settings(), Queue(), Queue(), Event())
    yield notifier
    notifier.buzzer.close()
    Device.pin_factory.reset()


def _state(alert_active: bool) -> EngineState:
    return EngineState(
        mode=EngineMode.MONITORING,
        baseline=0.0,
        window=(0.7 if alert_active else 0.1,),
        alert_active=alert_active,
        peak_magnitude=0.7,
        last_value=0.7 if alert_active else 0.1,
        timestamp=0.0
    )


def test_alert_sends_command_and_sounds_buzzer(notifier: AlertNotifier) -> None:
    notifier._notify(_state(True))
    assert notifier.command_queue.get_nowait() == b"A"
    assert notifier.buzzer.is_active


def test_normal_sends_command_and_silences_buzzer(notifier: AlertNotifier) -> None:
    notifier._notify(_state(True))
    notifier._notify(_state(False))

    assert notifier.command_queue.get_nowait() == b"A"
    assert notifier.command_queue.get_nowait() == b"N"
    assert not notifier.buzzer.is_active
