# latent.py
# Categorical stochastic latent: a grid of C independent K-way categoricals,
# flattened to C*K. Unimix keeps every class alive; training draws a
# Gumbel-perturbed straight-through sample, inference sharpens deterministically.

from typing import Optional

import torch
import torch.nn as nn
import torch.nn.functional as F

EPS = 1e-8
TRAIN_SHARPNESS = 10.0
EVAL_SHARPNESS = 100.0


def unimix_probs(logits: torch.Tensor, unimix: float) -> torch.Tensor:
    """
    logits: (..., C, K)
    returns p' = (1-u)*softmax(logits) + u/K, same shape
    """
    probs = F.softmax(logits, dim=-1)
    if unimix > 0:
        classes = logits.shape[-1]
        probs = (1.0 - unimix) * probs + unimix / classes
    return probs


def straight_through_sample(probs: torch.Tensor, generator: Optional[torch.Generator] = None) -> torch.Tensor:
    """
    Hard-ish forward, soft backward.
    probs: (..., C, K) already unimixed
    """
    u = torch.rand(probs.shape, dtype=probs.dtype, device=probs.device, generator=generator)
    gumbel = -torch.log(-torch.log(u + EPS) + EPS)
    noisy_logits = torch.log(probs + EPS) + gumbel
    sharp = F.softmax(noisy_logits * TRAIN_SHARPNESS, dim=-1)
    return probs + (sharp - probs).detach()


def deterministic_sample(probs: torch.Tensor) -> torch.Tensor:
    # no noise, no autodiff tricks: approximate argmax of p'
    return F.softmax(torch.log(probs + EPS) * EVAL_SHARPNESS, dim=-1)


def categorical_kl(
    posterior_logits: torch.Tensor,
    prior_logits: torch.Tensor,
    categories: int,
    classes: int,
    unimix: float = 0.0,
) -> torch.Tensor:
    """
    KL(post || prior) summed over the C categoricals.
    logits: (..., C*K) -> returns (...)
    """
    lead = posterior_logits.shape[:-1]
    if categories * classes == 0:
        return posterior_logits.new_zeros(lead)
    post = unimix_probs(posterior_logits.reshape(*lead, categories, classes), unimix)
    prior = unimix_probs(prior_logits.reshape(*lead, categories, classes), unimix)
    kl = post * (torch.log(post + EPS) - torch.log(prior + EPS))
    return kl.sum(dim=(-2, -1))


class CategoricalLatent(nn.Module):
    """
    Maps flat logits (..., C*K) to a flat sample (..., C*K).
    Every (C, K) block of the sample sums to 1 in both modes.
    Mode follows self.training, like the other modules.
    """

    def __init__(self, categories: int, classes: int, unimix: float = 0.01):
        super().__init__()
        if (categories == 0) != (classes == 0):
            raise ValueError("categories and classes must both be zero or both positive")
        self.categories = categories
        self.classes = classes
        self.unimix = unimix

    @property
    def size(self) -> int:
        return self.categories * self.classes

    def forward(self, logits: torch.Tensor, generator: Optional[torch.Generator] = None) -> torch.Tensor:
        if logits.shape[-1] != self.size:
            raise ValueError(f"expected logits with last dim {self.size}, got {tuple(logits.shape)}")
        lead = logits.shape[:-1]
        if self.size == 0:
            return logits.new_zeros(*lead, 0)

        probs = unimix_probs(logits.reshape(*lead, self.categories, self.classes), self.unimix)
        if self.training:
            sample = straight_through_sample(probs, generator=generator)
        else:
            sample = deterministic_sample(probs)
        return sample.reshape(*lead, self.size)

    def extra_repr(self) -> str:
        return f"categories={self.categories}, classes={self.classes}, unimix={self.unimix}"
