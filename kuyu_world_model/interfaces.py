# interfaces.py
# Plain value types exchanged with the simulation stack.

from dataclasses import dataclass
from typing import Any, Iterable, NamedTuple

import numpy as np


class ChannelSample(NamedTuple):
    channel_index: int
    value: float


class ActuatorValue(NamedTuple):
    value: float


@dataclass(frozen=True)
class WorldModelOutput:
    residual: np.ndarray      # (R,) in [-1, 1]
    extensions: np.ndarray    # (E,)
    uncertainty: np.ndarray   # (R+E,) in [0, 1]

    def __post_init__(self):
        expected = len(self.residual) + len(self.extensions)
        if len(self.uncertainty) != expected:
            raise ValueError(
                f"uncertainty has {len(self.uncertainty)} entries, expected residual+extensions={expected}"
            )


def to_vector(values: Any) -> np.ndarray:
    """
    Accepts a physics object exposing to_array(), a NumPy array, or an iterable
    of floats / ActuatorValue-like objects. Returns a fresh float32 array with
    the input's own shape; callers check that it is (N,).
    """
    if hasattr(values, "to_array"):
        values = values.to_array()
    if isinstance(values, np.ndarray):
        return np.array(values, dtype=np.float32)
    return np.array([float(getattr(v, "value", v)) for v in values], dtype=np.float32)


def densify_samples(samples: Iterable[Any], width: int):
    """
    Scatter (channel_index, value) samples into a zero vector of `width`.
    Returns (dense, dropped) where dropped counts channels that are out of range
    or not integral (1.7 names no channel).
    """
    dense = np.zeros(width, dtype=np.float32)
    dropped = 0
    for sample in samples:
        index, value = sample
        if isinstance(index, bool) or not float(index).is_integer():
            dropped += 1
            continue
        index = int(index)
        if 0 <= index < width:
            dense[index] = float(value)
        else:
            dropped += 1
    return dense, dropped
