# encoders.py
# Observation side of the world model:
#   PhysicsEncoder  : physics vector (B, P_in) -> embedding (B, P)
#   StateTokenizer  : sensor sequence (B, T, S) -> per-step embedding (B, T, P),
#                     causal 1D conv stack so step t only sees steps <= t.

import torch
import torch.nn as nn
import torch.nn.functional as F

from .config import WorldModelConfig


class PhysicsEncoder(nn.Module):
    def __init__(self, cfg: WorldModelConfig):
        super().__init__()
        self.fc1 = nn.Linear(cfg.physics_dimensions, cfg.physics_embed_dimensions)
        self.fc2 = nn.Linear(cfg.physics_embed_dimensions, cfg.physics_embed_dimensions)

    def forward(self, physics: torch.Tensor) -> torch.Tensor:  # (B, P_in) -> (B, P)
        return F.relu(self.fc2(F.relu(self.fc1(physics))))


class CausalConvBlock(nn.Module):
    """Left-padded Conv1d + LayerNorm + ReLU on channels-last sequences."""

    def __init__(self, in_ch: int, out_ch: int, kernel_size: int):
        super().__init__()
        self.kernel_size = kernel_size
        self.conv = nn.Conv1d(in_ch, out_ch, kernel_size=kernel_size, padding=0)
        self.norm = nn.LayerNorm(out_ch)

    def forward(self, x):  # x: (B, T, C_in)
        x = x.transpose(1, 2)                      # (B, C_in, T)
        x = F.pad(x, (self.kernel_size - 1, 0))    # pad the past only
        x = self.conv(x).transpose(1, 2)           # (B, T, C_out)
        return F.relu(self.norm(x))


class StateTokenizer(nn.Module):
    """
    encode: (B, T, sensor) -> (B, T, embed), T preserved
    decode: (B, T, embed)  -> (B, T, sensor)
    """

    def __init__(self, cfg: WorldModelConfig):
        super().__init__()
        self.sensor_dimensions = cfg.sensor_dimensions
        embed = cfg.physics_embed_dimensions
        n = cfg.tokenizer_layers

        chans = [cfg.sensor_dimensions] + [embed] * n
        self.encoder_blocks = nn.ModuleList([
            CausalConvBlock(chans[i], chans[i + 1], cfg.tokenizer_kernel_size)
            for i in range(n)
        ])
        self.encoder_projection = nn.Linear(embed, embed)

        # no transposed conv needed: the encoder keeps sequence length
        self.decoder_projection = nn.Linear(embed, embed)
        dec = [embed] * n + [cfg.sensor_dimensions]
        self.decoder_layers = nn.ModuleList([nn.Linear(dec[i], dec[i + 1]) for i in range(n)])
        self.decoder_norms = nn.ModuleList([nn.LayerNorm(dec[i + 1]) for i in range(n - 1)])

    def encode(self, obs: torch.Tensor) -> torch.Tensor:
        if obs.ndim != 3 or obs.shape[-1] != self.sensor_dimensions:
            raise ValueError(f"expected (B, T, {self.sensor_dimensions}) sensor sequence, got {tuple(obs.shape)}")
        x = obs
        for blk in self.encoder_blocks:
            x = blk(x)
        return self.encoder_projection(x)

    def decode(self, latent: torch.Tensor) -> torch.Tensor:
        x = F.relu(self.decoder_projection(latent))
        last = len(self.decoder_layers) - 1
        for i, layer in enumerate(self.decoder_layers):
            x = layer(x)
            if i < last:
                x = F.relu(self.decoder_norms[i](x))
        return x

    def forward(self, obs: torch.Tensor) -> torch.Tensor:
        return self.encode(obs)
