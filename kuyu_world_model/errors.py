# errors.py
# Failures surfaced by the stateful controller. A raised error means the call
# did not happen: session state is exactly as it was before.

from typing import Tuple, Union


class WorldModelError(ValueError):
    pass


class DimensionMismatch(WorldModelError):
    """
    An input vector's length differs from its configured width. `got` is the
    length, or the full shape when the input is not a flat vector.
    """

    def __init__(self, name: str, expected: int, got: Union[int, Tuple[int, ...]]):
        self.name = name
        self.expected = expected
        self.got = got
        super().__init__(f"{name} dimension mismatch: expected {expected}, got {got}")


class ActionCountMismatch(WorldModelError):
    def __init__(self, expected: int, got: int):
        self.expected = expected
        self.got = got
        super().__init__(f"action count mismatch: expected {expected}, got {got}")


class StepCountMismatch(ActionCountMismatch):
    """predict_future(steps, actions) with len(actions) != steps."""
