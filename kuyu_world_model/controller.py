# controller.py
# Stateful, thread-safe front end over StateWorldModel.
#
# One lock guards (model, session state). infer / predict_future / reset hold it
# for their whole duration, so callers see the state either before or after a
# call, never in between. Inputs are validated before the lock is taken; a
# rejected call leaves the session untouched.

import logging
import threading
from typing import Any, Iterable, List, Optional, Sequence

import numpy as np
import torch

from .config import WorldModelConfig
from .errors import DimensionMismatch, StepCountMismatch
from .interfaces import WorldModelOutput, densify_samples, to_vector
from .predictor import imagine
from .state import WorldModelState
from .world_model import StateWorldModel, WorldPrediction

logger = logging.getLogger(__name__)


def _to_numpy(t: torch.Tensor) -> np.ndarray:
    # (1, N) -> owned (N,) float32 copy
    return t.squeeze(0).detach().cpu().numpy().astype(np.float32, copy=True)


class WorldModelController:
    def __init__(self, model: StateWorldModel):
        # widths always come from the model the session runs
        self.cfg: WorldModelConfig = model.cfg
        self._model = model
        self._state = WorldModelState.initial(self.cfg)
        self._lock = threading.Lock()
        self._device = next(model.parameters()).device

    # ---------------------------
    # Session inspection
    # ---------------------------

    @property
    def state(self) -> WorldModelState:
        """Snapshot of the session; mutating it does not affect the controller."""
        with self._lock:
            return self._state.copy()

    @property
    def has_physics_context(self) -> bool:
        """False until the first successful infer(): predict_future would start cold."""
        with self._lock:
            return self._state.last_physics is not None

    # ---------------------------
    # Public operations
    # ---------------------------

    def infer(
        self,
        physics: Any,
        sensor_observations: Iterable[Any],
        action: Any,
        dt: Optional[float] = None,
    ) -> WorldModelOutput:
        """
        One posterior step from the session hidden state.
        physics: (P,) vector or object with to_array()
        sensor_observations: sparse (channel_index, value) samples; missing channels read as 0
        action: (A,) vector or sequence of ActuatorValue
        dt: accepted for interface compatibility; the transition is step-indexed
        """
        physics_vec = self._check(to_vector(physics), "physics", self.cfg.physics_dimensions)
        sensor_vec, dropped = densify_samples(sensor_observations, self.cfg.sensor_dimensions)
        if dropped:
            logger.debug("dropped %d sensor samples with no channel in [0, %d)", dropped, self.cfg.sensor_dimensions)
        action_vec = self._check(to_vector(action), "action", self.cfg.action_dimensions)

        with self._lock, torch.no_grad():
            h = self._tensor(self._state.h)
            pred = self._model.step(
                self._tensor(physics_vec), self._tensor(sensor_vec), self._tensor(action_vec), h
            )
            output = self._output(pred)
            # single swap: h, z and last_physics change together
            self._state = WorldModelState(
                h=_to_numpy(pred.h),
                z=_to_numpy(pred.z) if self.cfg.rssm_enabled else None,
                last_physics=physics_vec,
            )
        return output

    def predict_future(self, steps: int, actions: Sequence[Any]) -> List[WorldModelOutput]:
        """
        Prior-only rollout from the session state. Read-only: the session
        is the same after the call.
        """
        if len(actions) != steps:
            raise StepCountMismatch(expected=steps, got=len(actions))
        action_vecs = [self._check(to_vector(a), "action", self.cfg.action_dimensions) for a in actions]
        if steps == 0:
            return []
        action_seq = torch.tensor(np.stack(action_vecs), device=self._device).unsqueeze(0)  # (1, steps, A)

        with self._lock, torch.no_grad():
            h = self._tensor(self._state.h)
            last_physics = self._state.last_physics
            if last_physics is None:
                logger.debug("cold rollout: no physics observed yet, seeding with zeros")
                last_physics = np.zeros(self.cfg.physics_dimensions, dtype=np.float32)
            predictions = imagine(self._model, h, self._tensor(last_physics), action_seq)
            outputs = [self._output(p) for p in predictions]
        logger.debug("rolled out %d steps", steps)
        return outputs

    def reset(self):
        with self._lock:
            self._state = WorldModelState.initial(self.cfg)
        logger.debug("world model session reset")

    # ---------------------------
    # Helpers
    # ---------------------------

    @staticmethod
    def _check(vec: np.ndarray, name: str, expected: int) -> np.ndarray:
        if vec.ndim != 1:
            raise DimensionMismatch(name, expected=expected, got=vec.shape)
        if vec.shape[0] != expected:
            raise DimensionMismatch(name, expected=expected, got=vec.shape[0])
        return vec

    def _tensor(self, vec: np.ndarray) -> torch.Tensor:
        # torch.tensor copies, so the model never aliases session arrays
        return torch.tensor(vec, dtype=torch.float32, device=self._device).unsqueeze(0)

    @staticmethod
    def _output(pred: WorldPrediction) -> WorldModelOutput:
        return WorldModelOutput(
            residual=_to_numpy(pred.residual),
            extensions=_to_numpy(pred.extensions),
            uncertainty=_to_numpy(pred.uncertainty),
        )
