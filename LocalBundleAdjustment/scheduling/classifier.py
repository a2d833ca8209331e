"""
State Classifier

Turns pose distances and intrinsic freeze flags into the participation state
of every pose, intrinsic and landmark. The classification is recomputed from
scratch on every call.
"""

from typing import Dict, Iterable, Mapping, Optional

from LocalBundleAdjustment.config import LocalBAConfig
from LocalBundleAdjustment.core.structures.states import LocalBAState, LocalBAStates
from LocalBundleAdjustment.graph.distances import UNREACHABLE
from LocalBundleAdjustment.logger import get_logger

logger = get_logger("scheduling.classifier")

# Default of constant_distance_limit: None is a valid value (no limit)
_FROM_CONFIG = object()


class StateClassifier:
    """
    Distance threshold policy.

    Poses:
        0 <= d <= refined_distance_limit                 -> REFINED
        refined_distance_limit < d <= constant limit     -> CONSTANT (no upper bound if None)
        unreachable or beyond the constant limit         -> IGNORED
    Intrinsics:
        no refined or constant pose                      -> IGNORED
        frozen, or no refined pose                       -> CONSTANT
        otherwise                                        -> REFINED
    Landmarks:
        at least one refined observer                    -> REFINED
        at least one constant observer                   -> CONSTANT
        otherwise                                        -> IGNORED
    """

    def __init__(self,
                 refined_distance_limit: Optional[int] = None,
                 constant_distance_limit=_FROM_CONFIG,
                 config: Optional[LocalBAConfig] = None):
        """
        Args:
            refined_distance_limit: Overrides config.REFINED_DISTANCE_LIMIT
            constant_distance_limit: Overrides config.CONSTANT_DISTANCE_LIMIT;
                None removes the limit
            config: Thresholds (defaults to LocalBAConfig())
        """
        self.config = config or LocalBAConfig()
        self.refined_distance_limit = (
            self.config.REFINED_DISTANCE_LIMIT if refined_distance_limit is None else refined_distance_limit
        )
        self.constant_distance_limit = (
            self.config.CONSTANT_DISTANCE_LIMIT if constant_distance_limit is _FROM_CONFIG else constant_distance_limit
        )
        if (self.constant_distance_limit is not None
                and self.constant_distance_limit < self.refined_distance_limit):
            raise ValueError(
                f"Constant distance limit ({self.constant_distance_limit}) is below "
                f"the refined distance limit ({self.refined_distance_limit})"
            )

    def pose_state(self, distance: int) -> LocalBAState:
        if distance == UNREACHABLE or distance < 0:
            return LocalBAState.IGNORED
        if distance <= self.refined_distance_limit:
            return LocalBAState.REFINED
        if self.constant_distance_limit is None or distance <= self.constant_distance_limit:
            return LocalBAState.CONSTANT
        return LocalBAState.IGNORED

    @staticmethod
    def _combine(states: Iterable[LocalBAState]) -> LocalBAState:
        """Best state among the given ones: REFINED > CONSTANT > IGNORED"""
        best = LocalBAState.IGNORED
        for state in states:
            if state is LocalBAState.REFINED:
                return LocalBAState.REFINED
            if state is LocalBAState.CONSTANT:
                best = LocalBAState.CONSTANT
        return best

    def classify(self,
                 pose_distances: Mapping[int, int],
                 poses_by_intrinsic: Mapping[int, Iterable[int]],
                 frozen_flags: Mapping[int, bool],
                 observing_poses_by_landmark: Mapping[int, Iterable[int]]) -> LocalBAStates:
        """
        Classify every pose, intrinsic and landmark.

        Args:
            pose_distances: pose id -> graph distance (-1 if unreachable)
            poses_by_intrinsic: intrinsic id -> poses using it
            frozen_flags: intrinsic id -> True if its focal length converged
            observing_poses_by_landmark: landmark id -> poses observing it

        Returns:
            LocalBAStates with one entry per pose, intrinsic and landmark
        """
        poses = {pose_id: self.pose_state(d) for pose_id, d in pose_distances.items()}

        def state_of(pose_id):
            return poses.get(pose_id, LocalBAState.IGNORED)

        intrinsics: Dict[int, LocalBAState] = {}
        for intrinsic_id, pose_ids in poses_by_intrinsic.items():
            state = self._combine(state_of(p) for p in pose_ids)
            if state is LocalBAState.REFINED and frozen_flags.get(intrinsic_id, False):
                state = LocalBAState.CONSTANT
            intrinsics[intrinsic_id] = state

        landmarks = {
            landmark_id: self._combine(state_of(p) for p in pose_ids)
            for landmark_id, pose_ids in observing_poses_by_landmark.items()
        }

        states = LocalBAStates(poses=poses, intrinsics=intrinsics, landmarks=landmarks)
        logger.debug(f"Classified {len(poses)} poses, {len(intrinsics)} intrinsics, "
                     f"{len(landmarks)} landmarks")
        return states


def classify_states(pose_distances: Mapping[int, int],
                    poses_by_intrinsic: Mapping[int, Iterable[int]],
                    frozen_flags: Mapping[int, bool],
                    observing_poses_by_landmark: Mapping[int, Iterable[int]],
                    **config) -> LocalBAStates:
    """
    Convenience wrapper around StateClassifier.

    Args:
        **config: LocalBAConfig overrides (e.g. refined_distance_limit=2)
    """
    classifier = StateClassifier(config=LocalBAConfig(**config))
    return classifier.classify(pose_distances, poses_by_intrinsic, frozen_flags,
                               observing_poses_by_landmark)
