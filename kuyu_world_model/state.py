# state.py
# Inference session state, held as plain float32 NumPy vectors so snapshots
# are values, never views into live tensors.

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import WorldModelConfig


@dataclass(frozen=True)
class WorldModelState:
    h: np.ndarray                              # (H,)
    z: Optional[np.ndarray] = None             # (C*K,) or None when the latent is disabled
    last_physics: Optional[np.ndarray] = None  # (P,) from the most recent infer()

    @classmethod
    def initial(cls, cfg: WorldModelConfig) -> "WorldModelState":
        return cls(
            h=np.zeros(cfg.hidden_dimensions, dtype=np.float32),
            z=np.zeros(cfg.stochastic_latent_size, dtype=np.float32) if cfg.rssm_enabled else None,
            last_physics=None,
        )

    def copy(self) -> "WorldModelState":
        return WorldModelState(
            h=self.h.copy(),
            z=None if self.z is None else self.z.copy(),
            last_physics=None if self.last_physics is None else self.last_physics.copy(),
        )
