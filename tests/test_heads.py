import pytest
import torch

from conftest import make_cfg
from kuyu_world_model.heads import DecoderHead, DomainAdapter, HeadKind, build_head


@pytest.mark.parametrize("kind,width", [
    (HeadKind.RESIDUAL, 5),
    (HeadKind.EXTENSION, 4),
    (HeadKind.UNCERTAINTY, 9),
])
def test_head_shapes(small_cfg, kind, width):
    head = build_head(kind, small_cfg)
    out = head(torch.zeros(2, small_cfg.decoder_input_dimensions))
    assert out.shape == (2, width)


@pytest.mark.parametrize("scale", [1.0, 1e3, 1e5])
def test_bounded_heads_stay_in_range(small_cfg, scale):
    x = torch.randn(64, small_cfg.decoder_input_dimensions) * scale
    res_head = build_head(HeadKind.RESIDUAL, small_cfg)
    with torch.no_grad():
        # give the zero-initialised residual layer real weights
        res_head.out.weight.normal_()
    residual = res_head(x)
    uncertainty = build_head(HeadKind.UNCERTAINTY, small_cfg)(x)
    assert residual.min().item() >= -1.0 and residual.max().item() <= 1.0
    assert uncertainty.min().item() >= 0.0 and uncertainty.max().item() <= 1.0


def test_untrained_residual_is_zero(small_cfg):
    head = build_head(HeadKind.RESIDUAL, small_cfg)
    out = head(torch.randn(8, small_cfg.decoder_input_dimensions))
    assert torch.equal(out, torch.zeros_like(out))


def test_extension_is_unbounded(small_cfg):
    head = build_head(HeadKind.EXTENSION, small_cfg)
    assert head.bound is None
    with torch.no_grad():
        head.out.bias.fill_(5.0)
    assert head(torch.zeros(1, small_cfg.decoder_input_dimensions)).min().item() > 1.0


def test_decode_sequence_matches_per_step(small_cfg):
    head = build_head(HeadKind.UNCERTAINTY, small_cfg)
    states = torch.randn(3, 7, small_cfg.decoder_input_dimensions)
    bulk = head.decode_sequence(states)
    assert bulk.shape == (3, 7, small_cfg.uncertainty_dimensions)
    for t in range(7):
        assert torch.allclose(bulk[:, t], head(states[:, t]), atol=1e-6)


def test_generic_head_halves_hidden_width():
    head = DecoderHead(10, 8, 3)
    assert head.fc1.out_features == 8
    assert head.fc2.out_features == 4


def test_zero_extension_width():
    cfg = make_cfg(extension_dimensions=0)
    head = build_head(HeadKind.EXTENSION, cfg)
    assert head.decode_sequence(torch.zeros(2, 3, cfg.decoder_input_dimensions)).shape == (2, 3, 0)


def test_domain_adapter_starts_as_identity(small_cfg):
    adapter = DomainAdapter(small_cfg)
    residual = torch.randn(2, small_cfg.residual_dimensions)
    extension = torch.randn(2, small_cfg.extension_dimensions)
    r, e = adapter(residual, extension)
    assert r.shape == residual.shape and e.shape == extension.shape
    assert torch.allclose(r, residual)
    assert torch.allclose(e, extension)
