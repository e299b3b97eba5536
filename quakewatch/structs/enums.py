from enum import StrEnum


class EngineMode(StrEnum):
    """The two phases of a monitoring session. Calibration happens once,
    after that the engine stays in monitoring until the session ends.
    """
    CALIBRATING = 'calibrating'
    MONITORING = 'monitoring'
