"""
Mock scene and solver for testing and prototyping.

Simulates an incremental reconstruction without images: views are laid out
along a trajectory and each landmark is seen by a run of consecutive views,
so neighbouring views share many landmarks and distant ones share none.
"""

from typing import Dict, Iterator, List, Optional, Set

import numpy as np

from LocalBundleAdjustment.core.interfaces.base_solver import BaseLocalSolver, SolverReport, SolverStatus
from LocalBundleAdjustment.core.structures.scene import SceneSnapshot
from LocalBundleAdjustment.core.structures.states import LocalBAState, LocalBAStates
from LocalBundleAdjustment.logger import get_logger

logger = get_logger("data.mock_scene")


class MockSceneGenerator:
    """
    Synthetic incremental reconstruction.

    Useful for:
    - Unit testing
    - Checking the scheduling policy on long sequences
    - Timing the scheduler on large graphs
    """

    def __init__(self,
                 num_views: int = 30,
                 num_intrinsics: int = 1,
                 landmarks_per_view: int = 300,
                 track_length: int = 3,
                 initial_focal: float = 1000.0,
                 seed: Optional[int] = None):
        """
        Initialize mock scene.

        Args:
            num_views: Number of views to simulate
            num_intrinsics: Number of cameras, assigned round-robin to views
            landmarks_per_view: New landmarks started at each view
            track_length: Number of consecutive views observing a landmark
            initial_focal: Focal length every intrinsic starts from
            seed: Random seed for reproducibility
        """
        self.num_views = num_views
        self.num_intrinsics = num_intrinsics
        self.landmarks_per_view = landmarks_per_view
        self.track_length = track_length
        self.initial_focal = initial_focal
        self._rng = np.random.RandomState(seed)

        self._generate_data()

        logger.info(f"MockSceneGenerator: {num_views} views, {num_intrinsics} intrinsics, "
                    f"{len(self._landmarks)} landmarks")

    def _generate_data(self):
        """Generate landmark tracks"""
        self._landmarks: Dict[int, List[int]] = {}
        landmark_id = 0
        for start_view in range(self.num_views):
            last_view = min(start_view + self.track_length, self.num_views)
            # Jitter the track counts so that pairs do not all share the same number
            count = max(1, int(self._rng.normal(self.landmarks_per_view, self.landmarks_per_view * 0.05)))
            for _ in range(count):
                self._landmarks[landmark_id] = list(range(start_view, last_view))
                landmark_id += 1

    def intrinsic_of(self, view_id: int) -> int:
        return view_id % self.num_intrinsics

    def scene_at(self, num_registered: int, focal_lengths: Optional[Dict[int, float]] = None) -> SceneSnapshot:
        """
        Scene with the first `num_registered` views posed.

        Landmarks need at least two posed observers to be part of the scene.
        """
        registered = set(range(min(num_registered, self.num_views)))
        scene = SceneSnapshot()
        for view_id in range(self.num_views):
            scene.add_view(
                view_id,
                pose_id=view_id if view_id in registered else None,
                intrinsic_id=self.intrinsic_of(view_id),
            )

        for intrinsic_id in range(self.num_intrinsics):
            scene.focal_lengths[intrinsic_id] = (focal_lengths or {}).get(intrinsic_id, self.initial_focal)

        for landmark_id, views in self._landmarks.items():
            observers = [v for v in views if v in registered]
            if len(observers) >= 2:
                scene.add_landmark(landmark_id, observers)
        return scene

    def batches(self, batch_size: int = 1, initial_views: int = 2) -> Iterator[Set[int]]:
        """
        Yield the view ids resected at each step, starting after the initial pair.
        """
        next_view = initial_views
        while next_view < self.num_views:
            batch = set(range(next_view, min(next_view + batch_size, self.num_views)))
            next_view += len(batch)
            yield batch


class MockLocalSolver(BaseLocalSolver):
    """
    Pretends to optimize: every refined focal length moves by a random step
    that shrinks geometrically, so intrinsics converge after a few loops.
    """

    def __init__(self, step: float = 5.0, decay: float = 0.5, seed: Optional[int] = None):
        self.step = step
        self.decay = decay
        self.num_calls = 0
        self._rng = np.random.RandomState(seed)

    def solve(self, states: LocalBAStates, scene: SceneSnapshot) -> SolverReport:
        self.num_calls += 1
        amplitude = self.step * self.decay ** self.num_calls

        focal_lengths = {}
        for intrinsic_id, state in states.intrinsics.items():
            focal = scene.focal_lengths.get(intrinsic_id)
            if focal is None:
                continue
            if state is LocalBAState.REFINED:
                focal += self._rng.uniform(-amplitude, amplitude)
            focal_lengths[intrinsic_id] = focal

        num_blocks = sum(
            len(scene.landmarks.get(lid, ()))
            for lid, state in states.landmarks.items()
            if state is not LocalBAState.IGNORED
        )
        return SolverReport(
            success=True,
            status=SolverStatus.CONVERGED,
            num_successful_iterations=3,
            num_residual_blocks=num_blocks,
            initial_rmse=1.0,
            final_rmse=0.5,
            focal_lengths=focal_lengths,
        )
