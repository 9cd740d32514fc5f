# predictor.py
# Imagination rollout: chain prior-only steps over a fixed action sequence,
# feeding each predicted residual back into the physics context.

from typing import List

import torch
import torch.nn as nn

from .world_model import StateWorldModel, WorldPrediction


def imagine(
    model: StateWorldModel,
    initial_h: torch.Tensor,        # (B, H)
    initial_physics: torch.Tensor,  # (B, P)
    actions: torch.Tensor,          # (B, steps, A)
) -> List[WorldPrediction]:
    """
    No observations beyond the seed: every step samples the prior. Runs for
    exactly actions.shape[1] steps, no early stop.
    """
    if actions.ndim != 3 or actions.shape[0] != initial_h.shape[0]:
        raise ValueError(f"actions must be (B, steps, A) with B={initial_h.shape[0]}, got {tuple(actions.shape)}")

    h = initial_h
    physics = initial_physics
    predictions = []
    for t in range(actions.shape[1]):
        pred = model.imagination_step(physics, actions[:, t], h)
        predictions.append(pred)
        h = pred.h
        # the model predicts corrections; apply them for the next step's encoding
        physics = physics + pred.residual
    return predictions


class WorldPredictor(nn.Module):
    def __init__(self, model: StateWorldModel):
        super().__init__()
        self.model = model

    def rollout(self, initial_h, initial_physics, actions) -> List[WorldPrediction]:
        return imagine(self.model, initial_h, initial_physics, actions)

    def forward(self, initial_h, initial_physics, actions) -> List[WorldPrediction]:
        return self.rollout(initial_h, initial_physics, actions)
