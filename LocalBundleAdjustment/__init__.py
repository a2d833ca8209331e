"""
LocalBundleAdjustment

Scheduling core of a local bundle adjustment for incremental Structure from
Motion. After each registration batch it decides which poses, intrinsics and
landmarks the next bundle adjustment refines, holds constant or leaves out,
based on graph distances to the newly resected views and on the convergence
of each intrinsic's focal length.

Usage:
    from LocalBundleAdjustment import LocalBAScheduler, SceneSnapshot

    scheduler = LocalBAScheduler(refined_distance_limit=1)
    states = scheduler.prepare(scene, new_view_ids={12, 13})
    # ... run the solver with `states` ...
    scheduler.add_intrinsics_to_history(scene)
"""

from .config import LocalBAConfig
from .core import (
    BaseLocalSolver,
    BidirectionalMap,
    LocalBAState,
    LocalBAStates,
    LocalBAStatistics,
    SceneSnapshot,
    SolverReport,
    SolverStatus,
    View,
)
from .graph import UNREACHABLE, DistanceGraph, GraphDistanceEngine, count_shared_landmarks_per_pair
from .pipeline import LocalBAScheduler
from .reporting import LocalBAStep, TimeSummary, export_distances_histogram, export_intrinsics_history
from .scheduling import IntrinsicsConvergenceTracker, StateClassifier, classify_states

__all__ = [
    'LocalBAConfig',
    'LocalBAScheduler',
    'LocalBAState',
    'LocalBAStates',
    'LocalBAStatistics',
    'SceneSnapshot',
    'View',
    'BaseLocalSolver',
    'SolverReport',
    'SolverStatus',
    'BidirectionalMap',
    'DistanceGraph',
    'GraphDistanceEngine',
    'count_shared_landmarks_per_pair',
    'UNREACHABLE',
    'StateClassifier',
    'classify_states',
    'IntrinsicsConvergenceTracker',
    'TimeSummary',
    'LocalBAStep',
    'export_intrinsics_history',
    'export_distances_histogram',
]

__version__ = '1.0.0'
