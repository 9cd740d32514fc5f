# rollout_check.py
# Sanity pass over a (trained or fresh) world model on a synthetic episode:
# drive the controller step by step, then compare a k-step imagination rollout
# against the teacher-forced pass and report prior/posterior divergence.
#
#   python -m kuyu_world_model.rollout_check --steps 50 --k 5
#   python -m kuyu_world_model.rollout_check --checkpoint checkpoints/world_model.pth

import argparse
import logging

import numpy as np
import torch

from .config import WorldModelConfig, load_config
from .controller import WorldModelController
from .interfaces import ChannelSample
from .latent import categorical_kl
from .world_model import build_world_model, load_world_model

logger = logging.getLogger("kuyu_world_model.rollout_check")


def synthetic_episode(cfg: WorldModelConfig, steps: int, rng: np.random.Generator):
    """Smooth random-walk physics, noisy sensors, bounded actions."""
    physics = np.cumsum(rng.normal(0.0, 0.05, size=(steps, cfg.physics_dimensions)), axis=0)
    if cfg.sensor_dimensions <= cfg.physics_dimensions:
        sensors = physics[:, : cfg.sensor_dimensions]
    else:
        sensors = rng.normal(0.0, 1.0, size=(steps, cfg.sensor_dimensions))
    sensors = sensors + rng.normal(0.0, 0.01, size=sensors.shape)
    actions = np.clip(rng.normal(0.0, 0.3, size=(steps, cfg.action_dimensions)), -1.0, 1.0)
    return physics.astype(np.float32), sensors.astype(np.float32), actions.astype(np.float32)


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--checkpoint", default=None, help="world model .pth (fresh model if omitted)")
    ap.add_argument("--config", default=None, help="JSON config for a fresh model")
    ap.add_argument("--steps", type=int, default=50)
    ap.add_argument("--k", type=int, default=5)
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--device", default="cuda" if torch.cuda.is_available() else "cpu")
    args = ap.parse_args(argv)
    if args.steps < 1:
        ap.error("--steps must be >= 1")

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    torch.manual_seed(args.seed)
    rng = np.random.default_rng(args.seed)

    if args.checkpoint:
        model = load_world_model(args.checkpoint, device=args.device)
    else:
        cfg = load_config(args.config) if args.config else WorldModelConfig()
        model = build_world_model(cfg, device=args.device).eval()
    cfg = model.cfg

    physics, sensors, actions = synthetic_episode(cfg, args.steps, rng)
    ctrl = WorldModelController(model)

    # === Online inference ===
    residual_norms, confidences = [], []
    for t in range(args.steps):
        samples = [ChannelSample(i, float(v)) for i, v in enumerate(sensors[t])]
        out = ctrl.infer(physics[t], samples, actions[t], dt=0.01)
        residual_norms.append(float(np.linalg.norm(out.residual)))
        confidences.append(float(out.uncertainty.mean()))
    logger.info("infer: mean |residual|=%.6f  mean confidence=%.4f",
                float(np.mean(residual_norms)), float(np.mean(confidences)))

    # === k-step imagination from the session ===
    k = max(0, min(args.k, args.steps))
    future = ctrl.predict_future(k, list(actions[-k:]) if k else [])
    for i, out in enumerate(future, 1):
        logger.info("rollout step %d: |residual|=%.6f  confidence=%.4f",
                    i, float(np.linalg.norm(out.residual)), float(out.uncertainty.mean()))

    # === Teacher-forced pass: how much does the observation move the latent? ===
    with torch.no_grad():
        batch = [torch.from_numpy(a).unsqueeze(0).to(args.device) for a in (physics, sensors, actions)]
        seq = model(*batch)
        kl = categorical_kl(seq.posterior_logits, seq.prior_logits,
                            cfg.stochastic_categories, cfg.stochastic_classes,
                            cfg.stochastic_unimix_ratio)
    logger.info("teacher-forced KL(post||prior): mean=%.6f max=%.6f",
                kl.mean().item(), kl.max().item())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
