"""
Intrinsics Convergence Tracker

Keeps the focal length history of every intrinsic and freezes the intrinsics
whose focal length stopped moving.

Convergence test for one intrinsic:
    H = every focal length recorded so far
    S = the last `window_size` values of H
    sigma = stdev(S)
    sigma_normalized = sigma / (max(H) - min(H))
    converged if sigma_normalized < stdev_percentage_limit

A frozen intrinsic stays frozen for the rest of the reconstruction.
"""

from typing import Dict, List, Mapping, Sequence, Set, Tuple

import numpy as np

from LocalBundleAdjustment.logger import get_logger

logger = get_logger("scheduling.convergence")

# (number of poses using the intrinsic, focal length)
HistoryEntry = Tuple[int, float]


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation, 0.0 for fewer than 2 values"""
    if len(values) < 2:
        return 0.0
    return float(np.std(np.asarray(values, dtype=np.float64)))


class IntrinsicsConvergenceTracker:
    """
    Focal length history and frozen flags per intrinsic.

    Usage:
        tracker = IntrinsicsConvergenceTracker()
        tracker.record_snapshot(intrinsic_id=0, observation_count=12, focal_length=1203.4)

        if tracker.check_convergence(0, window_size=25, stdev_percentage_limit=0.01):
            ...  # intrinsic 0 is now constant in every future BA
    """

    def __init__(self):
        self._history: Dict[int, List[HistoryEntry]] = {}
        self._frozen: Dict[int, bool] = {}

    def record_snapshot(self, intrinsic_id: int, observation_count: int, focal_length: float):
        """Append a (pose count, focal length) sample to the intrinsic history"""
        self._history.setdefault(intrinsic_id, []).append((int(observation_count), float(focal_length)))
        self._frozen.setdefault(intrinsic_id, False)

    def check_convergence(self, intrinsic_id: int, window_size: int, stdev_percentage_limit: float) -> bool:
        """
        Decide whether the focal length of an intrinsic converged.

        Args:
            intrinsic_id: Intrinsic to check
            window_size: Number of latest focal lengths inspected
            stdev_percentage_limit: Limit on stdev(window) / range(history)

        Returns:
            True if the intrinsic is (now) frozen

        Raises:
            KeyError: If nothing was recorded for the intrinsic
        """
        if intrinsic_id not in self._history:
            raise KeyError(f"No focal length history for intrinsic {intrinsic_id}")
        if self._frozen[intrinsic_id]:
            return True

        if window_size < 2:
            # Not enough samples to measure a variation
            return False

        focals = self.focal_lengths(intrinsic_id)
        if len(focals) < window_size:
            return False

        window = focals[-window_size:]

        value_range = max(focals) - min(focals)
        if value_range == 0:
            converged = True
        else:
            normalized_stdev = standard_deviation(window) / value_range
            converged = normalized_stdev < stdev_percentage_limit
            logger.debug(f"Intrinsic {intrinsic_id}: normalized stdev {normalized_stdev:.4f} "
                         f"(limit {stdev_percentage_limit})")

        if converged:
            self._frozen[intrinsic_id] = True
            logger.info(f"Intrinsic {intrinsic_id} converged after {len(focals)} snapshots "
                        f"(focal {focals[-1]:.2f}): now constant")
        return converged

    def check_all(self, window_size: int, stdev_percentage_limit: float) -> Set[int]:
        """
        Run check_convergence on every tracked intrinsic.

        Returns:
            Ids of the intrinsics frozen by this call
        """
        newly_frozen = set()
        for intrinsic_id in self._history:
            was_frozen = self._frozen[intrinsic_id]
            if self.check_convergence(intrinsic_id, window_size, stdev_percentage_limit) and not was_frozen:
                newly_frozen.add(intrinsic_id)
        return newly_frozen

    def is_frozen(self, intrinsic_id: int) -> bool:
        if intrinsic_id not in self._frozen:
            raise KeyError(f"Intrinsic {intrinsic_id} is not tracked")
        return self._frozen[intrinsic_id]

    def frozen_flags(self) -> Mapping[int, bool]:
        return dict(self._frozen)

    def history(self, intrinsic_id: int) -> List[HistoryEntry]:
        if intrinsic_id not in self._history:
            raise KeyError(f"No focal length history for intrinsic {intrinsic_id}")
        return list(self._history[intrinsic_id])

    def focal_lengths(self, intrinsic_id: int) -> List[float]:
        return [focal for _, focal in self.history(intrinsic_id)]

    def last_focal_length(self, intrinsic_id: int) -> float:
        return self.history(intrinsic_id)[-1][1]

    def intrinsic_ids(self) -> List[int]:
        return sorted(self._history)

    def __len__(self) -> int:
        return len(self._history)
