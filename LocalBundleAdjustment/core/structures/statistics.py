from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Set

from LocalBundleAdjustment.core.structures.states import LocalBAState, LocalBAStates
from LocalBundleAdjustment.logger import get_logger

logger = get_logger("core.statistics")


@dataclass
class LocalBAStatistics:
    """
    Everything known about one local bundle adjustment loop.

    Solver figures are filled in by `update_from_report` once the solver
    returns; state counts come from the classification.
    """
    new_view_ids: Set[int] = field(default_factory=set)
    num_cameras_per_distance: Dict[int, int] = field(default_factory=dict)

    # Solver
    time: float = 0.0
    num_successful_iterations: int = 0
    num_unsuccessful_iterations: int = 0
    num_residual_blocks: int = 0
    initial_rmse: float = 0.0
    final_rmse: float = 0.0

    # Local BA
    num_refined_poses: int = 0
    num_constant_poses: int = 0
    num_ignored_poses: int = 0
    num_refined_intrinsics: int = 0
    num_constant_intrinsics: int = 0
    num_ignored_intrinsics: int = 0
    num_refined_landmarks: int = 0
    num_constant_landmarks: int = 0
    num_ignored_landmarks: int = 0

    @classmethod
    def from_states(cls,
                    new_view_ids: Set[int],
                    distances_histogram: Dict[int, int],
                    states: Optional[LocalBAStates] = None) -> 'LocalBAStatistics':
        stats = cls(new_view_ids=set(new_view_ids),
                    num_cameras_per_distance=dict(distances_histogram))
        if states is not None:
            stats.update_from_states(states)
        return stats

    def update_from_states(self, states: LocalBAStates):
        poses = LocalBAStates.count(states.poses)
        intrinsics = LocalBAStates.count(states.intrinsics)
        landmarks = LocalBAStates.count(states.landmarks)

        self.num_refined_poses = poses[LocalBAState.REFINED]
        self.num_constant_poses = poses[LocalBAState.CONSTANT]
        self.num_ignored_poses = poses[LocalBAState.IGNORED]
        self.num_refined_intrinsics = intrinsics[LocalBAState.REFINED]
        self.num_constant_intrinsics = intrinsics[LocalBAState.CONSTANT]
        self.num_ignored_intrinsics = intrinsics[LocalBAState.IGNORED]
        self.num_refined_landmarks = landmarks[LocalBAState.REFINED]
        self.num_constant_landmarks = landmarks[LocalBAState.CONSTANT]
        self.num_ignored_landmarks = landmarks[LocalBAState.IGNORED]

    def update_from_report(self, report):
        """Copy the solver figures of a SolverReport"""
        self.time = report.time
        self.num_successful_iterations = report.num_successful_iterations
        self.num_unsuccessful_iterations = report.num_unsuccessful_iterations
        self.num_residual_blocks = report.num_residual_blocks
        self.initial_rmse = report.initial_rmse
        self.final_rmse = report.final_rmse

    def to_dict(self) -> Dict:
        return {
            'new_view_ids': sorted(self.new_view_ids),
            'num_cameras_per_distance': dict(sorted(self.num_cameras_per_distance.items())),
            'time': self.time,
            'num_successful_iterations': self.num_successful_iterations,
            'num_unsuccessful_iterations': self.num_unsuccessful_iterations,
            'num_residual_blocks': self.num_residual_blocks,
            'initial_rmse': self.initial_rmse,
            'final_rmse': self.final_rmse,
            'poses': (self.num_refined_poses, self.num_constant_poses, self.num_ignored_poses),
            'intrinsics': (self.num_refined_intrinsics, self.num_constant_intrinsics,
                           self.num_ignored_intrinsics),
            'landmarks': (self.num_refined_landmarks, self.num_constant_landmarks,
                          self.num_ignored_landmarks),
        }

    def print_summary(self):
        logger.info(f"Local BA loop: {len(self.new_view_ids)} new views")
        logger.info(f"  Poses      refined/constant/ignored: "
                    f"{self.num_refined_poses}/{self.num_constant_poses}/{self.num_ignored_poses}")
        logger.info(f"  Intrinsics refined/constant/ignored: "
                    f"{self.num_refined_intrinsics}/{self.num_constant_intrinsics}/"
                    f"{self.num_ignored_intrinsics}")
        logger.info(f"  Landmarks  refined/constant/ignored: "
                    f"{self.num_refined_landmarks}/{self.num_constant_landmarks}/"
                    f"{self.num_ignored_landmarks}")
        for distance, count in sorted(self.num_cameras_per_distance.items()):
            logger.info(f"  Distance {distance:>3}: {count} cameras")
        if self.num_residual_blocks:
            logger.info(f"  Solver: {self.time:.3f}s, RMSE {self.initial_rmse:.4f} -> {self.final_rmse:.4f}")

    def export(self, filepath: str) -> None:
        """
        Append this loop as one whitespace separated line.

        A header is written when the file does not exist yet.
        """
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        write_header = not path.exists()

        columns = [
            ('time', f"{self.time:.6f}"),
            ('new_views', len(self.new_view_ids)),
            ('successful_iter', self.num_successful_iterations),
            ('unsuccessful_iter', self.num_unsuccessful_iterations),
            ('residual_blocks', self.num_residual_blocks),
            ('rmse_initial', f"{self.initial_rmse:.6f}"),
            ('rmse_final', f"{self.final_rmse:.6f}"),
            ('refined_poses', self.num_refined_poses),
            ('constant_poses', self.num_constant_poses),
            ('ignored_poses', self.num_ignored_poses),
            ('refined_intrinsics', self.num_refined_intrinsics),
            ('constant_intrinsics', self.num_constant_intrinsics),
            ('ignored_intrinsics', self.num_ignored_intrinsics),
            ('refined_landmarks', self.num_refined_landmarks),
            ('constant_landmarks', self.num_constant_landmarks),
            ('ignored_landmarks', self.num_ignored_landmarks),
        ]

        with open(path, 'a') as f:
            if write_header:
                f.write(" ".join(name for name, _ in columns) + "\n")
            f.write(" ".join(str(value) for _, value in columns) + "\n")
