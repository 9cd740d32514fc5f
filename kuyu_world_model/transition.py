# transition.py
# Recurrent state-space transition: (h_{t-1}, a_t, e_phys) -> h_t -> prior logits,
# plus posterior logits when an observation embedding is available.

import math
from typing import Optional, Tuple

import torch
import torch.nn as nn
import torch.nn.functional as F

from .config import WorldModelConfig


class GRUCell(nn.Module):
    """
    Single-step GRU (nn.GRU runs whole sequences; rollouts need one step at a time).
    x: (B, I), h: (B, H) -> h': (B, H)
    """

    def __init__(self, input_size: int, hidden_size: int, bias: bool = True):
        super().__init__()
        self.input_size = input_size
        self.hidden_size = hidden_size
        scale = 1.0 / math.sqrt(max(hidden_size, 1))

        self.wx = nn.Parameter(torch.empty(3 * hidden_size, input_size).uniform_(-scale, scale))
        self.wh = nn.Parameter(torch.empty(3 * hidden_size, hidden_size).uniform_(-scale, scale))
        if bias:
            self.b = nn.Parameter(torch.empty(3 * hidden_size).uniform_(-scale, scale))
            # recurrent bias of the candidate, applied before the reset gate
            self.bhn = nn.Parameter(torch.empty(hidden_size).uniform_(-scale, scale))
        else:
            self.register_parameter("b", None)
            self.register_parameter("bhn", None)

    def forward(self, x: torch.Tensor, h: torch.Tensor) -> torch.Tensor:
        H = self.hidden_size
        x_proj = F.linear(x, self.wx, self.b)          # (B, 3H)
        h_proj = F.linear(h, self.wh)                  # (B, 3H)

        x_rz, x_n = x_proj[..., : 2 * H], x_proj[..., 2 * H:]
        h_rz, h_n = h_proj[..., : 2 * H], h_proj[..., 2 * H:]
        if self.bhn is not None:
            h_n = h_n + self.bhn

        rz = torch.sigmoid(x_rz + h_rz)
        r, z = rz[..., :H], rz[..., H:]
        n = torch.tanh(x_n + r * h_n)
        return (1 - z) * n + z * h

    def extra_repr(self) -> str:
        return f"input_size={self.input_size}, hidden_size={self.hidden_size}"


class TransitionModel(nn.Module):
    """
    Prior and posterior share the deterministic step, so dropping the observation
    never changes how h evolves; only which latent distribution is sampled.
    """

    def __init__(self, cfg: WorldModelConfig):
        super().__init__()
        self.cfg = cfg
        H = cfg.hidden_dimensions
        S = cfg.stochastic_latent_size

        self.input_projection = nn.Linear(cfg.action_dimensions + cfg.physics_embed_dimensions, H)
        self.gru = GRUCell(H, H)
        if S > 0:
            self.prior_head = nn.Linear(H, S)
            self.posterior_head = nn.Linear(H + cfg.physics_embed_dimensions, S)
        else:
            self.prior_head = None
            self.posterior_head = None

    def _deterministic(self, h, action, physics_embed):
        x = torch.cat([action, physics_embed], dim=-1)
        x = F.relu(self.input_projection(x))
        return self.gru(x, h)

    def _logits(self, head: Optional[nn.Module], x: torch.Tensor) -> torch.Tensor:
        if head is None:
            return x.new_zeros(*x.shape[:-1], 0)
        return head(x)

    def prior(
        self, h: torch.Tensor, action: torch.Tensor, physics_embed: torch.Tensor
    ) -> Tuple[torch.Tensor, torch.Tensor]:
        """
        h: (B, H), action: (B, A), physics_embed: (B, P)
        returns (h', prior_logits (B, C*K))
        """
        new_h = self._deterministic(h, action, physics_embed)
        return new_h, self._logits(self.prior_head, new_h)

    def posterior(
        self,
        h: torch.Tensor,
        action: torch.Tensor,
        physics_embed: torch.Tensor,
        obs_embed: torch.Tensor,
    ) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
        """
        Same h' and prior as prior(); posterior additionally sees concat(h', obs_embed).
        returns (h', prior_logits, posterior_logits)
        """
        new_h, prior_logits = self.prior(h, action, physics_embed)
        posterior_logits = self._logits(self.posterior_head, torch.cat([new_h, obs_embed], dim=-1))
        return new_h, prior_logits, posterior_logits

    def forward(self, h, action, physics_embed, obs_embed=None):
        if obs_embed is None:
            return self.prior(h, action, physics_embed)
        return self.posterior(h, action, physics_embed, obs_embed)
