import pytest

from kuyu_world_model import ActionCountMismatch, DimensionMismatch, StepCountMismatch, WorldModelError


def test_taxonomy():
    assert issubclass(DimensionMismatch, WorldModelError)
    assert issubclass(StepCountMismatch, ActionCountMismatch)
    assert issubclass(WorldModelError, ValueError)


def test_messages_carry_expected_and_got():
    err = DimensionMismatch("physics", expected=13, got=12)
    assert (err.name, err.expected, err.got) == ("physics", 13, 12)
    assert "expected 13" in str(err) and "got 12" in str(err)

    with pytest.raises(ActionCountMismatch) as exc:
        raise StepCountMismatch(expected=5, got=4)
    assert exc.value.expected == 5
