"""
Local Bundle Adjustment Configuration

Thresholds driving the graph construction, the distance-based scheduling
policy and the intrinsics freezing.
"""

from typing import Optional


class LocalBAConfig:
    """
    Configuration for local bundle adjustment scheduling.

    Every attribute can be overridden with a lower-case keyword argument:

        config = LocalBAConfig(refined_distance_limit=2, intrinsics_window_size=10)
    """

    # Distance graph
    MIN_SHARED_LANDMARKS = 100  # Landmarks two views must share to be connected
    USE_INTRINSIC_COUPLING = True  # Temporarily link views sharing an intrinsic

    # Scheduling policy
    REFINED_DISTANCE_LIMIT = 1  # Poses at distance [0, limit] are refined
    CONSTANT_DISTANCE_LIMIT: Optional[int] = None  # None: every other connected pose is constant

    # Intrinsics convergence
    FREEZE_CONVERGED_INTRINSICS = True
    INTRINSICS_WINDOW_SIZE = 25  # Number of latest focal lengths inspected
    INTRINSICS_STDEV_PERCENTAGE_LIMIT = 0.01  # stdev(window) / range(history) below this freezes

    def __init__(self, **overrides):
        for key, value in overrides.items():
            attr = key.upper()
            if not hasattr(self, attr):
                raise ValueError(f"Unknown local BA option: {key}")
            setattr(self, attr, value)
        self.validate()

    def validate(self):
        """Raise ValueError if the thresholds are inconsistent."""
        if self.MIN_SHARED_LANDMARKS < 1:
            raise ValueError(f"MIN_SHARED_LANDMARKS must be >= 1, got {self.MIN_SHARED_LANDMARKS}")
        if self.REFINED_DISTANCE_LIMIT < 0:
            raise ValueError(f"REFINED_DISTANCE_LIMIT must be >= 0, got {self.REFINED_DISTANCE_LIMIT}")
        if (self.CONSTANT_DISTANCE_LIMIT is not None
                and self.CONSTANT_DISTANCE_LIMIT < self.REFINED_DISTANCE_LIMIT):
            raise ValueError(
                f"CONSTANT_DISTANCE_LIMIT ({self.CONSTANT_DISTANCE_LIMIT}) must be >= "
                f"REFINED_DISTANCE_LIMIT ({self.REFINED_DISTANCE_LIMIT})"
            )
        if self.INTRINSICS_WINDOW_SIZE < 1:
            raise ValueError(f"INTRINSICS_WINDOW_SIZE must be >= 1, got {self.INTRINSICS_WINDOW_SIZE}")
        if self.INTRINSICS_STDEV_PERCENTAGE_LIMIT <= 0:
            raise ValueError(
                f"INTRINSICS_STDEV_PERCENTAGE_LIMIT must be > 0, got {self.INTRINSICS_STDEV_PERCENTAGE_LIMIT}"
            )

    def to_dict(self) -> dict:
        return {
            key.lower(): getattr(self, key)
            for key in dir(self)
            if key.isupper()
        }

    def __repr__(self):
        options = ", ".join(f"{k}={v!r}" for k, v in sorted(self.to_dict().items()))
        return f"LocalBAConfig({options})"
