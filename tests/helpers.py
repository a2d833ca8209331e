from LocalBundleAdjustment.core.interfaces.base_solver import BaseLocalSolver, SolverReport, SolverStatus
from LocalBundleAdjustment.core.structures.scene import SceneSnapshot


def make_scene(views, landmarks=None, focal_lengths=None):
    """
    Build a SceneSnapshot.

    Args:
        views: view id -> (pose id or None, intrinsic id or None)
        landmarks: landmark id -> observing view ids
        focal_lengths: intrinsic id -> focal length
    """
    scene = SceneSnapshot()
    for view_id, (pose_id, intrinsic_id) in views.items():
        scene.add_view(view_id, pose_id=pose_id, intrinsic_id=intrinsic_id)
    for landmark_id, observers in (landmarks or {}).items():
        scene.add_landmark(landmark_id, observers)
    scene.focal_lengths.update(focal_lengths or {})
    return scene


def shared_landmarks(first_id, count, *view_ids):
    """`count` landmarks, numbered from first_id, all observed by view_ids"""
    return {first_id + i: set(view_ids) for i in range(count)}


class RecordingSolver(BaseLocalSolver):
    """Returns fixed focal lengths and remembers the states it was given"""

    def __init__(self, focal_lengths=None):
        self.focal_lengths = focal_lengths or {}
        self.calls = []

    def solve(self, states, scene):
        self.calls.append(states)
        return SolverReport(
            success=True,
            status=SolverStatus.CONVERGED,
            time=0.25,
            num_successful_iterations=4,
            num_unsuccessful_iterations=1,
            num_residual_blocks=12,
            initial_rmse=2.0,
            final_rmse=0.5,
            focal_lengths=dict(self.focal_lengths),
        )
