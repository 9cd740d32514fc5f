# heads.py
# Decoder heads on concat(h, z): one generic MLP with a pluggable output bound.
#   residual    -> tanh,    [-1, 1], width R
#   extension   -> linear,  free,    width E
#   uncertainty -> sigmoid, [0, 1],  width R + E (1 = full confidence)

import enum
from typing import Callable, Optional, Tuple

import torch
import torch.nn as nn
import torch.nn.functional as F

from .config import WorldModelConfig


class HeadKind(enum.Enum):
    RESIDUAL = "residual"
    EXTENSION = "extension"
    UNCERTAINTY = "uncertainty"


_OUTPUT_BOUNDS = {
    HeadKind.RESIDUAL: torch.tanh,
    HeadKind.EXTENSION: None,
    HeadKind.UNCERTAINTY: torch.sigmoid,
}


class DecoderHead(nn.Module):
    """
    (N, in_dim) -> (N, out_dim). No sequential state: (B*T, D) batches decode
    exactly like (B, D) ones.
    """

    def __init__(self, in_dim: int, hidden: int, out_dim: int,
                 bound: Optional[Callable[[torch.Tensor], torch.Tensor]] = None):
        super().__init__()
        self.fc1 = nn.Linear(in_dim, hidden)
        self.fc2 = nn.Linear(hidden, hidden // 2)
        self.out = nn.Linear(hidden // 2, out_dim)
        self.bound = bound

    def forward(self, state: torch.Tensor) -> torch.Tensor:
        x = F.relu(self.fc1(state))
        x = F.relu(self.fc2(x))
        x = self.out(x)
        return x if self.bound is None else self.bound(x)

    def decode_sequence(self, states: torch.Tensor) -> torch.Tensor:
        """(B, T, D) -> (B, T, out_dim) in one batched pass."""
        B, T, D = states.shape
        return self.forward(states.reshape(B * T, D)).reshape(B, T, self.out.out_features)


def build_head(kind: HeadKind, cfg: WorldModelConfig) -> DecoderHead:
    out_dim = {
        HeadKind.RESIDUAL: cfg.residual_dimensions,
        HeadKind.EXTENSION: cfg.extension_dimensions,
        HeadKind.UNCERTAINTY: cfg.uncertainty_dimensions,
    }[kind]
    head = DecoderHead(cfg.decoder_input_dimensions, cfg.hidden_dimensions, out_dim, _OUTPUT_BOUNDS[kind])
    if kind is HeadKind.RESIDUAL:
        # untrained model = physics unchanged (residual exactly 0)
        nn.init.zeros_(head.out.weight)
        nn.init.zeros_(head.out.bias)
    return head


class DomainAdapter(nn.Module):
    """
    Sim-to-real projection of (residual, extension). Starts as the identity,
    so an untrained adapter passes sim outputs through unchanged.
    """

    def __init__(self, cfg: WorldModelConfig):
        super().__init__()
        self.residual_projection = nn.Linear(cfg.residual_dimensions, cfg.residual_dimensions)
        self.extension_projection = nn.Linear(cfg.extension_dimensions, cfg.extension_dimensions)
        for proj in (self.residual_projection, self.extension_projection):
            nn.init.eye_(proj.weight)
            nn.init.zeros_(proj.bias)

    def forward(self, sim_residual: torch.Tensor, sim_extension: torch.Tensor) -> Tuple[torch.Tensor, torch.Tensor]:
        return self.residual_projection(sim_residual), self.extension_projection(sim_extension)
