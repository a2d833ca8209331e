"""
Base interface for the bundle adjustment solver.

The scheduler never optimizes anything itself: it hands the state maps to a
solver implementing this contract and collects the figures it reports.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from LocalBundleAdjustment.core.structures.scene import SceneSnapshot
from LocalBundleAdjustment.core.structures.states import LocalBAState, LocalBAStates
from LocalBundleAdjustment.logger import get_logger

logger = get_logger("core.interfaces")


class SolverStatus(Enum):
    """Status codes for solver reports"""
    CONVERGED = "converged"
    MAX_ITERATIONS = "max_iterations_reached"
    NO_CONVERGENCE = "no_convergence"
    INVALID_INPUT = "invalid_input"
    FAILED = "failed"


@dataclass
class SolverReport:
    """
    Summary of one bundle adjustment run.

    Attributes:
        success: Whether the solver produced usable parameters
        status: Status code from SolverStatus
        time: Time spent in the solver (s)
        num_successful_iterations: Accepted steps
        num_unsuccessful_iterations: Rejected steps
        num_residual_blocks: Residual blocks in the problem
        initial_rmse: sqrt(initial_cost / num_residuals)
        final_rmse: sqrt(final_cost / num_residuals)
        focal_lengths: Updated focal length per intrinsic, if the solver refined any
        metadata: Additional solver-specific information
    """
    success: bool
    status: SolverStatus
    time: float = 0.0
    num_successful_iterations: int = 0
    num_unsuccessful_iterations: int = 0
    num_residual_blocks: int = 0
    initial_rmse: float = 0.0
    final_rmse: float = 0.0
    focal_lengths: Dict[int, float] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.success

    def get_rmse_reduction(self) -> float:
        return self.initial_rmse - self.final_rmse

    def print_summary(self):
        logger.info(f"Solver: {'success' if self.success else 'failure'} ({self.status.value})")
        logger.info(f"  Time: {self.time:.3f}s")
        logger.info(f"  Iterations: {self.num_successful_iterations} successful, "
                    f"{self.num_unsuccessful_iterations} unsuccessful")
        logger.info(f"  Residual blocks: {self.num_residual_blocks}")
        logger.info(f"  RMSE: {self.initial_rmse:.4f} -> {self.final_rmse:.4f}")


class BaseLocalSolver(ABC):
    """
    Abstract bundle adjustment solver driven by local BA states.

    Implementations must:
    - leave IGNORED poses, intrinsics and landmarks out of the problem
    - add CONSTANT parameter blocks but hold them fixed
    - optimize REFINED parameter blocks

    Examples:
        >>> class CeresSolver(BaseLocalSolver):
        ...     def solve(self, states, scene):
        ...         problem = build_problem(scene, states)
        ...         summary = run(problem)
        ...         return SolverReport(success=True, status=SolverStatus.CONVERGED)
    """

    @abstractmethod
    def solve(self, states: LocalBAStates, scene: SceneSnapshot) -> SolverReport:
        """
        Run bundle adjustment restricted by the given states.

        Args:
            states: Pose, intrinsic and landmark states for this pass
            scene: Scene the states were computed from

        Returns:
            SolverReport describing the run
        """
        pass

    def get_solver_name(self) -> str:
        return self.__class__.__name__

    def validate_states(self, states: LocalBAStates) -> Optional[str]:
        """Return an error message if there is nothing to optimize"""
        if states.is_empty():
            return "No parameter block scheduled"
        if LocalBAStates.count(states.poses)[LocalBAState.REFINED] == 0:
            return "No refined pose"
        return None
