import pytest
import torch

from kuyu_world_model import WorldModelConfig, build_world_model


def make_cfg(**overrides):
    base = dict(
        physics_dimensions=5,
        sensor_dimensions=3,
        action_dimensions=2,
        hidden_dimensions=16,
        stochastic_categories=4,
        stochastic_classes=3,
        residual_dimensions=5,
        extension_dimensions=4,
        tokenizer_layers=2,
        tokenizer_kernel_size=3,
        physics_embed_dimensions=8,
    )
    base.update(overrides)
    return WorldModelConfig(**base)


@pytest.fixture(autouse=True)
def _seed():
    torch.manual_seed(0)


@pytest.fixture
def small_cfg():
    return make_cfg()


@pytest.fixture
def small_model(small_cfg):
    return build_world_model(small_cfg).eval()
