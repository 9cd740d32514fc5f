import pytest
import torch

from kuyu_world_model import WorldPredictor, imagine


def test_rollout_produces_one_prediction_per_action(small_model, small_cfg):
    predictor = WorldPredictor(small_model)
    steps = 3
    preds = predictor.rollout(
        torch.zeros(1, small_cfg.hidden_dimensions),
        torch.zeros(1, small_cfg.physics_dimensions),
        torch.zeros(1, steps, small_cfg.action_dimensions),
    )
    assert len(preds) == steps
    for p in preds:
        assert p.residual.shape == (1, small_cfg.residual_dimensions)
        assert p.uncertainty.shape == (1, small_cfg.uncertainty_dimensions)
        assert p.h.shape == (1, small_cfg.hidden_dimensions)


def test_rollout_feeds_residual_back_into_physics(small_model, small_cfg):
    with torch.no_grad():
        small_model.residual_head.out.bias.fill_(0.5)
    h0 = torch.randn(2, small_cfg.hidden_dimensions)
    phys0 = torch.randn(2, small_cfg.physics_dimensions)
    actions = torch.randn(2, 4, small_cfg.action_dimensions)

    with torch.no_grad():
        preds = imagine(small_model, h0, phys0, actions)
        h, physics = h0, phys0
        for t in range(4):
            ref = small_model.imagination_step(physics, actions[:, t], h)
            assert torch.allclose(preds[t].residual, ref.residual, atol=1e-6)
            assert torch.allclose(preds[t].h, ref.h, atol=1e-6)
            h, physics = ref.h, physics + ref.residual


def test_rollout_is_deterministic_in_eval(small_model, small_cfg):
    args = (
        torch.randn(1, small_cfg.hidden_dimensions),
        torch.randn(1, small_cfg.physics_dimensions),
        torch.randn(1, 6, small_cfg.action_dimensions),
    )
    with torch.no_grad():
        a = imagine(small_model, *args)
        b = imagine(small_model, *args)
    for pa, pb in zip(a, b):
        assert torch.equal(pa.residual, pb.residual)
        assert torch.equal(pa.uncertainty, pb.uncertainty)


def test_rollout_of_zero_steps(small_model, small_cfg):
    preds = imagine(
        small_model,
        torch.zeros(1, small_cfg.hidden_dimensions),
        torch.zeros(1, small_cfg.physics_dimensions),
        torch.zeros(1, 0, small_cfg.action_dimensions),
    )
    assert preds == []


def test_rollout_rejects_batch_mismatch(small_model, small_cfg):
    with pytest.raises(ValueError):
        imagine(
            small_model,
            torch.zeros(2, small_cfg.hidden_dimensions),
            torch.zeros(2, small_cfg.physics_dimensions),
            torch.zeros(1, 3, small_cfg.action_dimensions),
        )
