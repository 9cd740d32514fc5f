# kuyu_world_model
# Learned residual / extension corrections on top of an analytical physics model.

from .config import WorldModelConfig, load_config
from .controller import WorldModelController
from .errors import ActionCountMismatch, DimensionMismatch, StepCountMismatch, WorldModelError
from .heads import DecoderHead, DomainAdapter, HeadKind, build_head
from .interfaces import ActuatorValue, ChannelSample, WorldModelOutput
from .latent import CategoricalLatent, categorical_kl
from .predictor import WorldPredictor, imagine
from .state import WorldModelState
from .world_model import (
    StateWorldModel,
    StateWorldModelOutput,
    WorldPrediction,
    build_world_model,
    load_world_model,
    save_world_model,
)

__all__ = [
    "ActionCountMismatch",
    "ActuatorValue",
    "CategoricalLatent",
    "ChannelSample",
    "DecoderHead",
    "DimensionMismatch",
    "DomainAdapter",
    "HeadKind",
    "StateWorldModel",
    "StateWorldModelOutput",
    "StepCountMismatch",
    "WorldModelConfig",
    "WorldModelController",
    "WorldModelError",
    "WorldModelOutput",
    "WorldModelState",
    "WorldPrediction",
    "WorldPredictor",
    "build_head",
    "build_world_model",
    "categorical_kl",
    "imagine",
    "load_config",
    "load_world_model",
    "save_world_model",
]
