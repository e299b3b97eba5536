from typing import Optional
from dataclasses import dataclass

from quakewatch.structs.enums import EngineMode


@dataclass(frozen=True)
class EngineState:
    mode: EngineMode
    baseline: float
    window: tuple[float, ...]
    alert_active: bool
    peak_magnitude: float
    last_value: Optional[float]
    timestamp: float

    @property
    def calibrated(self) -> bool:
        return self.mode == EngineMode.MONITORING

    @property
    def current_deviation(self) -> float:
        """
        Signed offset of the most recent sample from the baseline.
        Before calibration the baseline is 0, so this is the raw value.
        """
        if self.last_value is None:
            return 0.0
        return self.last_value - self.baseline

    def to_dict(self):
        return {
            "timestamp": self.timestamp,
            "mode": str(self.mode),
            "calibrated": self.calibrated,
            "baseline": self.baseline,
            "window": list(self.window),
            "alert_active": self.alert_active,
            "peak_magnitude": self.peak_magnitude,
            "current_deviation": self.current_deviation
        }
