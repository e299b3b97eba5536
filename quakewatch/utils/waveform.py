from typing import Iterable
import json

import numpy as np

from quakewatch.structs.engine_state import EngineState


def waveform_points(window: Iterable[float], baseline: float, threshold: float):
    """
    Map the buffered raw samples to chart coordinates.
    Each sample becomes (step, offset from baseline, highlighted), oldest first,
    where highlighted marks samples whose deviation exceeds the threshold.
    """
    offsets = np.asarray(tuple(window), dtype=np.float64) - baseline
    highlighted = np.abs(offsets) > threshold

    return [
        (i, float(offset), bool(flag))
        for i, (offset, flag) in enumerate(zip(offsets, highlighted))
    ]


def status_text(state: EngineState) -> str:
    if not state.calibrated:
        return "Calibrating... (Keep sensor still)"
    return f"Monitoring | Max: {state.peak_magnitude:.2f}g"


def magnitude_label(state: EngineState) -> str:
    return (
        f"Current: {state.current_deviation:.2f}g | "
        f"Max: {state.peak_magnitude:.2f}g | "
        f"Baseline: {state.baseline:.2f}g"
    )


def build_message(state: EngineState, threshold: float) -> str:
    """JSON payload pushed to chart clients after each ingested sample."""
    payload = state.to_dict()
    payload["threshold"] = threshold
    payload["status"] = status_text(state)
    payload["label"] = magnitude_label(state)
    payload["points"] = [
        {"x": x, "y": y, "highlight": flag}
        for x, y, flag in waveform_points(state.window, state.baseline, threshold)
    ]

    return json.dumps(payload)
