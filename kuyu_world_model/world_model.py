# world_model.py
# Full residual world model: physics encoder + sensor tokenizer + transition
# + categorical latent + three decoder heads. Physics predictions are never
# modified here; the residual is an additive correction applied downstream.
#
#   forward()           teacher-forced sequence pass (posterior latents), for training
#   step()              one posterior step, for online inference
#   imagination_step()  one prior step, for rollouts without observations

import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional

import torch
import torch.nn as nn

from .config import WorldModelConfig
from .encoders import PhysicsEncoder, StateTokenizer
from .heads import HeadKind, build_head
from .latent import CategoricalLatent
from .transition import TransitionModel

logger = logging.getLogger(__name__)


class WorldPrediction(NamedTuple):
    residual: torch.Tensor      # (B, R) in [-1, 1]
    extensions: torch.Tensor    # (B, E)
    uncertainty: torch.Tensor   # (B, R+E) in [0, 1]
    h: torch.Tensor             # (B, H) hidden state after the step
    z: torch.Tensor             # (B, C*K) sampled latent


@dataclass
class StateWorldModelOutput:
    residual: torch.Tensor          # (B, T, R)
    extensions: torch.Tensor        # (B, T, E)
    uncertainty: torch.Tensor       # (B, T, R+E)
    prior_logits: torch.Tensor      # (B, T, C*K)
    posterior_logits: torch.Tensor  # (B, T, C*K)
    final_h: torch.Tensor           # (B, H)


class StateWorldModel(nn.Module):
    def __init__(self, cfg: WorldModelConfig):
        super().__init__()
        self.cfg = cfg
        self.physics_encoder = PhysicsEncoder(cfg)
        self.tokenizer = StateTokenizer(cfg)
        self.transition = TransitionModel(cfg)
        self.latent = CategoricalLatent(
            cfg.stochastic_categories, cfg.stochastic_classes, cfg.stochastic_unimix_ratio
        )
        self.residual_head = build_head(HeadKind.RESIDUAL, cfg)
        self.extension_head = build_head(HeadKind.EXTENSION, cfg)
        self.uncertainty_head = build_head(HeadKind.UNCERTAINTY, cfg)

    def initial_hidden(self, batch: int, device=None) -> torch.Tensor:
        return torch.zeros(batch, self.cfg.hidden_dimensions, device=device)

    def _decode(self, h: torch.Tensor, z: torch.Tensor) -> WorldPrediction:
        state = torch.cat([h, z], dim=-1)   # (B, H + C*K)
        return WorldPrediction(
            residual=self.residual_head(state),
            extensions=self.extension_head(state),
            uncertainty=self.uncertainty_head(state),
            h=h,
            z=z,
        )

    def forward(
        self,
        physics_states: torch.Tensor,
        sensor_obs: torch.Tensor,
        actions: torch.Tensor,
        initial_h: Optional[torch.Tensor] = None,
    ) -> StateWorldModelOutput:
        """
        physics_states: (B, T, P_in)
        sensor_obs:     (B, T, S)
        actions:        (B, T, A)
        initial_h:      (B, H) or None for zeros
        """
        if physics_states.ndim != 3:
            raise ValueError(f"physics_states must be (B, T, P), got {tuple(physics_states.shape)}")
        B, T, _ = physics_states.shape
        if sensor_obs.shape[:2] != (B, T) or actions.shape[:2] != (B, T):
            raise ValueError(
                f"batch/time mismatch: physics {tuple(physics_states.shape)}, "
                f"sensors {tuple(sensor_obs.shape)}, actions {tuple(actions.shape)}"
            )
        if T == 0:
            raise ValueError("cannot run a sequence of length 0")

        # causal, so encoding the whole sequence up front == encoding step by step
        obs_embed = self.tokenizer.encode(sensor_obs)   # (B, T, P)
        h = initial_h if initial_h is not None else self.initial_hidden(B, physics_states.device)

        priors, posteriors, states = [], [], []
        for t in range(T):
            phys_embed = self.physics_encoder(physics_states[:, t])
            h, prior_logits, posterior_logits = self.transition.posterior(
                h, actions[:, t], phys_embed, obs_embed[:, t]
            )
            z = self.latent(posterior_logits)           # teacher forcing
            priors.append(prior_logits)
            posteriors.append(posterior_logits)
            states.append(torch.cat([h, z], dim=-1))

        states = torch.stack(states, dim=1)             # (B, T, H + C*K)
        return StateWorldModelOutput(
            residual=self.residual_head.decode_sequence(states),
            extensions=self.extension_head.decode_sequence(states),
            uncertainty=self.uncertainty_head.decode_sequence(states),
            prior_logits=torch.stack(priors, dim=1),
            posterior_logits=torch.stack(posteriors, dim=1),
            final_h=h,
        )

    def step(
        self,
        physics_state: torch.Tensor,
        sensor_obs: torch.Tensor,
        action: torch.Tensor,
        h: torch.Tensor,
    ) -> WorldPrediction:
        """
        physics (B, P_in), sensors (B, S), action (B, A), h (B, H).
        The tokenizer sees this one sample with zero causal padding, whereas
        forward() gives obs_embed[:, t] the previous kernel_size-1 samples.
        """
        phys_embed = self.physics_encoder(physics_state)
        obs_embed = self.tokenizer.encode(sensor_obs.unsqueeze(1)).squeeze(1)
        new_h, _, posterior_logits = self.transition.posterior(h, action, phys_embed, obs_embed)
        return self._decode(new_h, self.latent(posterior_logits))

    def imagination_step(
        self,
        physics_state: torch.Tensor,
        action: torch.Tensor,
        h: torch.Tensor,
    ) -> WorldPrediction:
        phys_embed = self.physics_encoder(physics_state)
        new_h, prior_logits = self.transition.prior(h, action, phys_embed)
        return self._decode(new_h, self.latent(prior_logits))


def build_world_model(cfg: Optional[WorldModelConfig] = None, device: str = "cpu") -> StateWorldModel:
    cfg = cfg or WorldModelConfig()
    model = StateWorldModel(cfg).to(device)
    n_params = sum(p.numel() for p in model.parameters())
    logger.info("built world model: %d parameters, latent %dx%d, hidden %d",
                n_params, cfg.stochastic_categories, cfg.stochastic_classes, cfg.hidden_dimensions)
    return model


# ---------------------------
# Save / Load helpers
# ---------------------------

def save_world_model(model: StateWorldModel, path: str):
    torch.save({
        "cfg": model.cfg.to_dict(),
        "state_dict": model.state_dict(),
    }, path)
    logger.info("saved world model -> %s", path)


def load_world_model(path: str, device: str = "cpu") -> StateWorldModel:
    blob = torch.load(path, map_location=device)
    cfg = WorldModelConfig.from_dict(blob["cfg"])
    model = StateWorldModel(cfg)
    model.load_state_dict(blob["state_dict"])
    model.to(device).eval()
    logger.info("loaded world model <- %s", path)
    return model
