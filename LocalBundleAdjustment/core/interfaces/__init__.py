from .base_solver import BaseLocalSolver, SolverReport, SolverStatus

__all__ = [
    'BaseLocalSolver',
    'SolverReport',
    'SolverStatus',
]
