"""
Scheduling Module

Decides which parameter blocks the next bundle adjustment refines, holds
constant or leaves out.

Components:
- StateClassifier: distance threshold policy for poses, intrinsics and landmarks
- IntrinsicsConvergenceTracker: focal length history and sticky freeze flags
"""

from .classifier import StateClassifier, classify_states
from .convergence import IntrinsicsConvergenceTracker, standard_deviation

__all__ = [
    'StateClassifier',
    'classify_states',
    'IntrinsicsConvergenceTracker',
    'standard_deviation',
]
