# config.py
# Architecture hyperparameters for the residual world model.
# One frozen dataclass; read-only for the lifetime of a model instance.

import json
import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorldModelConfig:
    physics_dimensions: int = 13        # pos3 + quat4 + vel3 + omega3
    sensor_dimensions: int = 6          # accel3 + gyro3
    action_dimensions: int = 4          # motor commands
    hidden_dimensions: int = 128
    stochastic_categories: int = 8
    stochastic_classes: int = 8
    residual_dimensions: int = 13
    extension_dimensions: int = 16
    tokenizer_layers: int = 3
    tokenizer_kernel_size: int = 3
    physics_embed_dimensions: int = 64
    stochastic_unimix_ratio: float = 0.01

    def __post_init__(self):
        for f in fields(self):
            if f.name == "stochastic_unimix_ratio":
                continue
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{f.name} must be a non-negative int, got {value!r}")
        for name in ("physics_dimensions", "sensor_dimensions", "action_dimensions",
                     "residual_dimensions", "physics_embed_dimensions"):
            if getattr(self, name) == 0:
                raise ValueError(f"{name} must be positive")
        # rollouts add the residual back onto the physics vector
        if self.residual_dimensions != self.physics_dimensions:
            raise ValueError(
                f"residual_dimensions ({self.residual_dimensions}) must equal "
                f"physics_dimensions ({self.physics_dimensions})"
            )
        if (self.stochastic_categories == 0) !=(self.stochastic_classes == 0):
            raise ValueError(
                "stochastic_categories and stochastic_classes must both be zero "
                f"(latent disabled) or both positive, got "
                f"{self.stochastic_categories}x{self.stochastic_classes}"
            )
        if not 0.0 <= self.stochastic_unimix_ratio < 1.0:
            raise ValueError(f"stochastic_unimix_ratio must be in [0, 1), got {self.stochastic_unimix_ratio}")
        if self.tokenizer_layers < 1:
            raise ValueError("tokenizer_layers must be >= 1")
        if self.tokenizer_kernel_size < 1:
            raise ValueError("tokenizer_kernel_size must be >= 1")

    @property
    def stochastic_latent_size(self) -> int:
        return self.stochastic_categories * self.stochastic_classes

    @property
    def rssm_enabled(self) -> bool:
        return self.stochastic_latent_size > 0

    @property
    def decoder_input_dimensions(self) -> int:
        """Width of concat(h, z) fed to every decoder head."""
        return self.hidden_dimensions + self.stochastic_latent_size

    @property
    def uncertainty_dimensions(self) -> int:
        return self.residual_dimensions + self.extension_dimensions

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, blob: Mapping[str, Any]) -> "WorldModelConfig":
        """
        Build a config from a (possibly partial) mapping.
        Missing keys keep their defaults; unknown keys are dropped.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(blob) - known)
        if unknown:
            logger.warning("ignoring unknown world model config keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in blob.items() if k in known})


def load_config(path: str) -> WorldModelConfig:
    with open(path, "r") as f:
        blob = json.load(f)
    if not isinstance(blob, dict):
        raise ValueError(f"{path}: expected a JSON object, got {type(blob).__name__}")
    return WorldModelConfig.from_dict(blob)
