import time
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Dict

from LocalBundleAdjustment.logger import get_logger

logger = get_logger("reporting.timing")


class LocalBAStep(Enum):
    """Timed phases of a local BA loop"""
    UPDATE_GRAPH = "update_graph"
    COMPUTE_DISTANCES = "compute_distances"
    CONVERT_DISTANCES_TO_STATES = "convert_distances_to_states"
    ADJUSTMENT = "adjustment"
    SAVE_INTRINSICS = "save_intrinsics"


class TimeSummary:
    """
    Time spent in each step of the local BA, accumulated over all loops.

    Usage:
        timer = TimeSummary()
        timer.reset_timer()
        update_graph()
        timer.save_time(LocalBAStep.UPDATE_GRAPH)

        with timer.measure(LocalBAStep.COMPUTE_DISTANCES):
            compute_distances()
    """

    def __init__(self):
        self._start = time.time()
        self._times: Dict[LocalBAStep, float] = {step: 0.0 for step in LocalBAStep}

    def reset_timer(self):
        self._start = time.time()

    def save_time(self, step: LocalBAStep) -> float:
        """
        Add the time elapsed since the last reset to `step` and reset the timer.

        Returns:
            Elapsed seconds
        """
        elapsed = time.time() - self._start
        self._times[step] += elapsed
        self.reset_timer()
        return elapsed

    @contextmanager
    def measure(self, step: LocalBAStep):
        self.reset_timer()
        try:
            yield
        finally:
            self.save_time(step)

    def get_time(self, step: LocalBAStep) -> float:
        return self._times[step]

    @property
    def total_time(self) -> float:
        return sum(self._times.values())

    def as_dict(self) -> Dict[str, float]:
        return {step.value: seconds for step, seconds in self._times.items()}

    def show_times(self):
        logger.info("Local BA timing:")
        for step, seconds in self._times.items():
            logger.info(f"  {step.value:<28} {seconds:.4f}s")
        logger.info(f"  {'total':<28} {self.total_time:.4f}s")

    def export_times(self, filepath: str) -> bool:
        """
        Write one `step seconds` line per step and the total.

        Returns:
            True if the file was written
        """
        path = Path(filepath)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w') as f:
                for step, seconds in self._times.items():
                    f.write(f"{step.value} {seconds:.6f}\n")
                f.write(f"total {self.total_time:.6f}\n")
        except OSError as e:
            logger.error(f"Cannot export local BA times to {path}: {e}")
            return False
        return True
