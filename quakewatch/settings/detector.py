from pydantic import BaseModel, Field, model_validator

from quakewatch.utils.seismic_engine import (
    WINDOW_SIZE,
    CALIBRATION_SAMPLES,
    DETECTION_THRESHOLD,
    PEAK_RESET_INTERVAL,
    SeismicEngine
)


class DetectorSettings(BaseModel):
    window_size: int = Field(default=WINDOW_SIZE, gt=0)
    calibration_samples: int = Field(default=CALIBRATION_SAMPLES, gt=0)
    detection_threshold: float = Field(default=DETECTION_THRESHOLD, gt=0)
    peak_reset_interval: int = Field(default=PEAK_RESET_INTERVAL, gt=0)

    @model_validator(mode='after')
    def validate_peak_reset(self) -> 'DetectorSettings':
        # The peak only resets after an eviction, when the full window length
        # is a multiple of the interval
        if self.window_size % self.peak_reset_interval != 0:
            suggestion = max(
                self.peak_reset_interval,
                round(self.window_size / self.peak_reset_interval) * self.peak_reset_interval
            )

            raise ValueError(
                f"Window size ({self.window_size}) is not a multiple of the peak reset "
                f"interval ({self.peak_reset_interval}), so the peak magnitude would never reset.\n\n"
                f"RECOMMENDATION: Set 'window_size' to {suggestion}."
            )
        return self

    def create_engine(self) -> SeismicEngine:
        return SeismicEngine(
            window_size=self.window_size,
            calibration_samples=self.calibration_samples,
            detection_threshold=self.detection_threshold,
            peak_reset_interval=self.peak_reset_interval
        )
