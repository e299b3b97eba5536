from typing import Optional, Union
from dataclasses import dataclass
import math
import time


@dataclass
class Reading:
    timestamp: float
    value: float

    # The sensor prints one ASCII magnitude (in g) per line
    ENCODING = "ascii"

    @classmethod
    def from_line(cls, raw: Union[bytes, str], timestamp: Optional[float] = None):
        """
        Convert a raw serial line to a Reading instance.
        Raises ValueError for empty, unparseable or non-finite lines so that
        only clean numeric samples reach the detector.
        """
        if isinstance(raw, bytes):
            raw = raw.decode(cls.ENCODING, errors="replace")

        line = raw.strip()
        if not line:
            raise ValueError("Empty line")

        value = float(line)
        if not math.isfinite(value):
            raise ValueError(f"Non-finite value: {line}")

        return cls(time.time() if timestamp is None else timestamp, value)
