"""
Core data structures and interfaces shared by the local BA modules.
"""

from .interfaces import BaseLocalSolver, SolverReport, SolverStatus
from .structures import (
    BidirectionalMap,
    LocalBAState,
    LocalBAStates,
    LocalBAStatistics,
    SceneSnapshot,
    View,
)

__all__ = [
    'BaseLocalSolver',
    'SolverReport',
    'SolverStatus',
    'BidirectionalMap',
    'LocalBAState',
    'LocalBAStates',
    'LocalBAStatistics',
    'SceneSnapshot',
    'View',
]
