import dataclasses
import json

import pytest

from kuyu_world_model import WorldModelConfig, load_config


def test_defaults():
    cfg = WorldModelConfig()
    assert cfg.physics_dimensions == 13
    assert cfg.sensor_dimensions == 6
    assert cfg.action_dimensions == 4
    assert cfg.hidden_dimensions == 128
    assert cfg.stochastic_latent_size == 64
    assert cfg.rssm_enabled
    assert cfg.residual_dimensions == 13
    assert cfg.extension_dimensions == 16
    assert cfg.decoder_input_dimensions == 128 + 64
    assert cfg.uncertainty_dimensions == 13 + 16


def test_disabled_latent():
    cfg = WorldModelConfig(stochastic_categories=0, stochastic_classes=0)
    assert not cfg.rssm_enabled
    assert cfg.decoder_input_dimensions == cfg.hidden_dimensions


def test_from_dict_fills_defaults_and_drops_unknown_keys():
    cfg = WorldModelConfig.from_dict({"physics_dimensions": 7, "residual_dimensions": 7,
                                      "sensor_dimensions": 3, "latent_dimensions": 32})
    assert cfg.physics_dimensions == 7
    assert cfg.sensor_dimensions == 3
    assert cfg.hidden_dimensions == 128
    assert cfg.stochastic_categories == 8


def test_round_trip_dict():
    cfg = WorldModelConfig(hidden_dimensions=32, stochastic_unimix_ratio=0.05)
    assert WorldModelConfig.from_dict(cfg.to_dict()) == cfg


def test_load_config(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"hidden_dimensions": 4, "stochastic_categories": 0, "stochastic_classes": 0}))
    cfg = load_config(str(path))
    assert cfg.hidden_dimensions == 4
    assert not cfg.rssm_enabled


def test_load_config_rejects_non_object(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValueError):
        load_config(str(path))


@pytest.mark.parametrize("overrides", [
    {"stochastic_categories": 0, "stochastic_classes": 4},
    {"stochastic_categories": 4, "stochastic_classes": 0},
    {"hidden_dimensions": -1},
    {"physics_dimensions": 0, "residual_dimensions": 0},
    {"residual_dimensions": 12},
    {"stochastic_unimix_ratio": 1.0},
    {"stochastic_unimix_ratio": -0.1},
    {"tokenizer_layers": 0},
    {"tokenizer_kernel_size": 0},
    {"action_dimensions": 2.5},
])
def test_invalid_configs_raise(overrides):
    with pytest.raises(ValueError):
        WorldModelConfig(**overrides)


def test_config_is_read_only():
    cfg = WorldModelConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.hidden_dimensions = 3
