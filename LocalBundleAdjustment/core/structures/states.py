from dataclasses import dataclass, field
from enum import Enum
from typing import Dict


class LocalBAState(Enum):
    """Participation of a parameter block in the next bundle adjustment"""
    REFINED = "refined"    # free variable in the solver
    CONSTANT = "constant"  # added to the solver but held fixed
    IGNORED = "ignored"    # left out of the solver


@dataclass
class LocalBAStates:
    """
    State maps handed to the solver for one optimization pass.

    Attributes:
        poses: pose id -> state
        intrinsics: intrinsic id -> state
        landmarks: landmark id -> state
    """
    poses: Dict[int, LocalBAState] = field(default_factory=dict)
    intrinsics: Dict[int, LocalBAState] = field(default_factory=dict)
    landmarks: Dict[int, LocalBAState] = field(default_factory=dict)

    def pose_state(self, pose_id: int) -> LocalBAState:
        if pose_id not in self.poses:
            raise KeyError(f"Pose {pose_id} has no local BA state")
        return self.poses[pose_id]

    def intrinsic_state(self, intrinsic_id: int) -> LocalBAState:
        if intrinsic_id not in self.intrinsics:
            raise KeyError(f"Intrinsic {intrinsic_id} has no local BA state")
        return self.intrinsics[intrinsic_id]

    def landmark_state(self, landmark_id: int) -> LocalBAState:
        if landmark_id not in self.landmarks:
            raise KeyError(f"Landmark {landmark_id} has no local BA state")
        return self.landmarks[landmark_id]

    @staticmethod
    def count(states: Dict[int, LocalBAState]) -> Dict[LocalBAState, int]:
        """Number of entities in each state (every state present, possibly 0)"""
        counts = {state: 0 for state in LocalBAState}
        for state in states.values():
            counts[state] += 1
        return counts

    def num_constant_and_refined_poses(self) -> int:
        return sum(1 for s in self.poses.values() if s is not LocalBAState.IGNORED)

    def is_empty(self) -> bool:
        return not (self.poses or self.intrinsics or self.landmarks)
