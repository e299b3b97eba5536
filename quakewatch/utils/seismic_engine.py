import time
import numbers
from typing import Optional
from collections import deque
from threading import Lock

import numpy as np

from quakewatch.structs.engine_state import EngineState
from quakewatch.structs.enums import EngineMode


WINDOW_SIZE = 100            # samples kept for the waveform while monitoring
CALIBRATION_SAMPLES = 5      # samples averaged into the baseline
DETECTION_THRESHOLD = 0.5    # g, minimum deviation to trigger an alert
PEAK_RESET_INTERVAL = 50     # peak resets when the window length is a multiple of this


class InvalidSample(ValueError):
    """Raised when a non-numeric or non-finite value is fed to the engine."""


class SeismicEngine:
    """
    Single-channel amplitude detector for accelerometer magnitude samples.
    The engine first averages a few samples at rest to obtain a baseline, then
    keeps a sliding window of the most recent raw readings, tracks the peak
    deviation from the baseline and flags an alert whenever the latest sample
    deviates by more than the detection threshold.
    All state is guarded by one lock so that readers on other threads always
    get a consistent view through snapshot().
    """
    def __init__(
        self,
        window_size: int = WINDOW_SIZE,
        calibration_samples: int = CALIBRATION_SAMPLES,
        detection_threshold: float = DETECTION_THRESHOLD,
        peak_reset_interval: int = PEAK_RESET_INTERVAL
    ):
        if window_size < 1 or calibration_samples < 1 or peak_reset_interval < 1:
            raise ValueError("Window size, calibration samples and reset interval must be positive")

        self.window_size = window_size
        self.calibration_samples = calibration_samples
        self.detection_threshold = detection_threshold
        self.peak_reset_interval = peak_reset_interval

        self._lock = Lock()
        self._calibrated = False
        self._baseline = 0.0
        self._alert_active = False
        self._max_recent_magnitude = 0.0
        self._last_value = None

        # Capacity switches to window_size once calibration completes
        self._window = deque(maxlen=self.calibration_samples)

    def ingest(self, value: float) -> None:
        value = self._validate(value)

        with self._lock:
            self._last_value = value

            if not self._calibrated:
                self._calibrate(value)
            else:
                self._monitor(value)

    def _calibrate(self, value: float):
        self._window.append(value)

        if len(self._window) >= self.calibration_samples:
            self._baseline = float(np.mean(self._window))
            self._calibrated = True
            self._window = deque(maxlen=self.window_size)

    def _monitor(self, value: float):
        deviation = value - self._baseline

        # a full deque drops its oldest entry on append
        evicting = len(self._window) == self._window.maxlen
        self._window.append(value)

        magnitude = abs(deviation)
        if magnitude > self._max_recent_magnitude:
            self._max_recent_magnitude = magnitude

        self._alert_active = magnitude > self.detection_threshold

        if evicting and len(self._window) % self.peak_reset_interval == 0:
            self._max_recent_magnitude = 0.0

    @staticmethod
    def _validate(value) -> float:
        # bool is an int subclass, but a flag is never a magnitude
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise InvalidSample(f"Sample is not a real number: {value!r}")

        value = float(value)
        if not np.isfinite(value):
            raise InvalidSample(f"Sample is not finite: {value!r}")

        return value

    def mode(self) -> EngineMode:
        with self._lock:
            return EngineMode.MONITORING if self._calibrated else EngineMode.CALIBRATING

    def is_calibrated(self) -> bool:
        with self._lock:
            return self._calibrated

    def baseline(self) -> float:
        with self._lock:
            return self._baseline

    def window_snapshot(self) -> tuple[float, ...]:
        with self._lock:
            return tuple(self._window)

    def is_alert_active(self) -> bool:
        with self._lock:
            return self._alert_active

    def peak_magnitude(self) -> float:
        with self._lock:
            return self._max_recent_magnitude

    def snapshot(self, timestamp: Optional[float] = None) -> EngineState:
        """
        Copy every field at once so the window is never seen mid-update.
        The timestamp is normally the arrival time of the last sample,
        it defaults to the current time.
        """
        with self._lock:
            return EngineState(
                mode=EngineMode.MONITORING if self._calibrated else EngineMode.CALIBRATING,
                baseline=self._baseline,
                window=tuple(self._window),
                alert_active=self._alert_active,
                peak_magnitude=self._max_recent_magnitude,
                last_value=self._last_value,
                timestamp=time.time() if timestamp is None else timestamp
            )
