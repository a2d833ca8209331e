"""
Local Bundle Adjustment Scheduler

Owns every piece of local BA state for one reconstruction and runs the
scheduling cycle after each registration batch:

    update graph -> distances (with intrinsic coupling) -> states
        -> external solver -> intrinsics history

Usage:
    scheduler = LocalBAScheduler(refined_distance_limit=1)

    # After each batch of resected views
    states = scheduler.prepare(scene, new_view_ids={42, 43})
    report = my_solver.solve(states, scene)
    scheduler.add_intrinsics_to_history(scene, report.focal_lengths)

    # Or all at once
    report = scheduler.process(scene, new_view_ids={42, 43}, solver=my_solver)
"""

from typing import Dict, Iterable, Mapping, Optional, Set

from LocalBundleAdjustment.config import LocalBAConfig
from LocalBundleAdjustment.core.interfaces.base_solver import BaseLocalSolver, SolverReport, SolverStatus
from LocalBundleAdjustment.core.structures.scene import SceneSnapshot
from LocalBundleAdjustment.core.structures.states import LocalBAState, LocalBAStates
from LocalBundleAdjustment.core.structures.statistics import LocalBAStatistics
from LocalBundleAdjustment.graph.distance_graph import DistanceGraph
from LocalBundleAdjustment.graph.distances import GraphDistanceEngine, distances_histogram, max_finite_distance
from LocalBundleAdjustment.graph.matches import count_shared_landmarks_per_pair
from LocalBundleAdjustment.logger import get_logger
from LocalBundleAdjustment.reporting.export import export_distances_histogram, export_intrinsics_history
from LocalBundleAdjustment.reporting.timing import LocalBAStep, TimeSummary
from LocalBundleAdjustment.scheduling.classifier import StateClassifier
from LocalBundleAdjustment.scheduling.convergence import IntrinsicsConvergenceTracker

logger = get_logger("pipeline.local_ba")


class LocalBAScheduler:
    """
    Local bundle adjustment data and scheduling for an incremental reconstruction.

    The distance graph, distance maps, intrinsics history and frozen flags
    live as long as the reconstruction. States are recomputed from scratch on
    every cycle.
    """

    def __init__(self, config: Optional[LocalBAConfig] = None, **overrides):
        """
        Args:
            config: Thresholds (defaults to LocalBAConfig())
            **overrides: LocalBAConfig overrides, e.g. refined_distance_limit=2
        """
        if config is None:
            config = LocalBAConfig(**overrides)
        elif overrides:
            raise ValueError("Pass either a config or keyword overrides, not both")
        self.config = config

        self.graph = DistanceGraph(min_shared_landmarks=config.MIN_SHARED_LANDMARKS)
        self.distance_engine = GraphDistanceEngine()
        self.classifier = StateClassifier(config=config)
        self.intrinsics_tracker = IntrinsicsConvergenceTracker()
        self.time_summary = TimeSummary()

        self._new_view_ids: Set[int] = set()
        self._view_distances: Dict[int, int] = {}
        self._pose_distances: Dict[int, int] = {}
        self._pose_of_view: Dict[int, int] = {}
        self._states = LocalBAStates()
        self.statistics = LocalBAStatistics()
        self.history = []

    # ------------------------------------------------------------------
    # New views
    # ------------------------------------------------------------------

    @property
    def new_view_ids(self) -> Set[int]:
        return set(self._new_view_ids)

    def set_new_views(self, view_ids: Iterable[int]):
        self._new_view_ids = set(view_ids)

    # ------------------------------------------------------------------
    # Graph
    # ------------------------------------------------------------------

    def select_views_to_add(self, scene: SceneSnapshot) -> Set[int]:
        """Posed views not in the distance graph yet (all of them if the graph is empty)"""
        posed = scene.posed_view_ids()
        if self.graph.is_empty():
            return posed
        return {v for v in posed if not self.graph.has_view(v)}

    def update_graph_with_new_views(self, scene: SceneSnapshot) -> int:
        """
        Insert the newly posed views and their match edges.

        Returns:
            Number of match edges added
        """
        views_to_add = self.select_views_to_add(scene)
        if not views_to_add:
            logger.debug("No new posed view to add to the distance graph")
            return 0

        counts = count_shared_landmarks_per_pair(
            scene.tracks_per_view(), views_to_add, scene.posed_view_ids()
        )
        return self.graph.update_with_matches(counts, views_to_add)

    def remove_views_from_graph(self, view_ids: Iterable[int]) -> bool:
        """
        Remove views (e.g. rejected after BA) from the distance graph.

        Returns:
            True if every view was in the graph
        """
        view_ids = set(view_ids)
        removed_all = self.graph.remove_views(view_ids)
        for view_id in view_ids:
            self._view_distances.pop(view_id, None)
            self._pose_of_view.pop(view_id, None)
        self._new_view_ids -= view_ids

        # A pose keeps a distance and a state only while one of its views remains
        self._pose_distances = self.distance_engine.compute_pose_distances(
            self._view_distances, self._pose_of_view
        )
        for pose_id in set(self._states.poses) - set(self._pose_distances):
            del self._states.poses[pose_id]
        self.statistics.num_cameras_per_distance = self.get_distances_histogram()
        self.statistics.update_from_states(self._states)
        return removed_all

    # ------------------------------------------------------------------
    # Distances
    # ------------------------------------------------------------------

    def compute_distances_maps(self, scene: SceneSnapshot):
        """
        Graph distance of every view and pose to the new views.

        Views sharing an intrinsic are coupled for the duration of the search.
        """
        if not self._new_view_ids:
            logger.warning("No new view set: every view will be unreachable")

        if self.config.USE_INTRINSIC_COUPLING:
            with self.graph.intrinsic_coupling(scene.views_by_intrinsic()) as num_coupling:
                logger.debug(f"Computing distances with {num_coupling} coupling edges")
                self._view_distances = self.distance_engine.compute_distances(self.graph, self._new_view_ids)
        else:
            self._view_distances = self.distance_engine.compute_distances(self.graph, self._new_view_ids)

        self._pose_of_view = scene.pose_of_view()
        self._pose_distances = self.distance_engine.compute_pose_distances(
            self._view_distances, self._pose_of_view
        )
        logger.info(f"Distances computed from {len(self._new_view_ids)} new views: "
                    f"max distance {max_finite_distance(self._view_distances)}")

    def get_view_distance(self, view_id: int) -> int:
        if view_id not in self._view_distances:
            raise KeyError(f"No distance for view {view_id}")
        return self._view_distances[view_id]

    def get_pose_distance(self, pose_id: int) -> int:
        if pose_id not in self._pose_distances:
            raise KeyError(f"No distance for pose {pose_id}")
        return self._pose_distances[pose_id]

    @property
    def view_distances(self) -> Dict[int, int]:
        return dict(self._view_distances)

    @property
    def pose_distances(self) -> Dict[int, int]:
        return dict(self._pose_distances)

    def get_distances_histogram(self) -> Dict[int, int]:
        """Number of poses at each distance"""
        return distances_histogram(self._pose_distances)

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    def convert_distances_to_states(self, scene: SceneSnapshot) -> LocalBAStates:
        frozen_flags = (self.intrinsics_tracker.frozen_flags()
                        if self.config.FREEZE_CONVERGED_INTRINSICS else {})
        self._states = self.classifier.classify(
            self._pose_distances,
            scene.poses_by_intrinsic(),
            frozen_flags,
            scene.observing_poses_by_landmark(),
        )
        # Intrinsics without any posed view still get a state
        for intrinsic_id in scene.focal_lengths:
            self._states.intrinsics.setdefault(intrinsic_id, LocalBAState.IGNORED)
        return self._states

    @property
    def states(self) -> LocalBAStates:
        return self._states

    def get_pose_state(self, pose_id: int) -> LocalBAState:
        return self._states.pose_state(pose_id)

    def get_intrinsic_state(self, intrinsic_id: int) -> LocalBAState:
        return self._states.intrinsic_state(intrinsic_id)

    def get_landmark_state(self, landmark_id: int) -> LocalBAState:
        return self._states.landmark_state(landmark_id)

    def get_number_of_constant_and_refined_cameras(self) -> int:
        return self._states.num_constant_and_refined_poses()

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    def prepare(self, scene: SceneSnapshot, new_view_ids: Iterable[int]) -> LocalBAStates:
        """
        Update the graph, compute the distances and classify every parameter.

        Args:
            scene: Current reconstruction
            new_view_ids: Views resected in this batch

        Returns:
            States for the next bundle adjustment
        """
        self.set_new_views(new_view_ids)

        with self.time_summary.measure(LocalBAStep.UPDATE_GRAPH):
            self.update_graph_with_new_views(scene)

        with self.time_summary.measure(LocalBAStep.COMPUTE_DISTANCES):
            self.compute_distances_maps(scene)

        with self.time_summary.measure(LocalBAStep.CONVERT_DISTANCES_TO_STATES):
            states = self.convert_distances_to_states(scene)

        self.statistics = LocalBAStatistics.from_states(
            self._new_view_ids, self.get_distances_histogram(), states
        )
        return states

    def adjust(self, solver: BaseLocalSolver, scene: SceneSnapshot) -> SolverReport:
        """
        Run the external solver on the current states.

        Returns:
            The solver report (a failed report if the states schedule nothing)
        """
        error = solver.validate_states(self._states)
        if error:
            logger.warning(f"Skipping {solver.get_solver_name()}: {error}")
            return SolverReport(success=False, status=SolverStatus.INVALID_INPUT,
                                metadata={'error': error})

        with self.time_summary.measure(LocalBAStep.ADJUSTMENT):
            report = solver.solve(self._states, scene)

        self.statistics.update_from_report(report)
        return report

    def add_intrinsics_to_history(self,
                                  scene: SceneSnapshot,
                                  focal_lengths: Optional[Mapping[int, float]] = None) -> Set[int]:
        """
        Snapshot the focal length of every used intrinsic and freeze the converged ones.

        Args:
            scene: Reconstruction after the bundle adjustment
            focal_lengths: Optimized focal lengths overriding scene.focal_lengths

        Returns:
            Intrinsics frozen by this call
        """
        with self.time_summary.measure(LocalBAStep.SAVE_INTRINSICS):
            current = dict(scene.focal_lengths)
            current.update(focal_lengths or {})

            for intrinsic_id, pose_ids in sorted(scene.poses_by_intrinsic().items()):
                if intrinsic_id not in current:
                    logger.warning(f"Intrinsic {intrinsic_id} has no focal length: not recorded")
                    continue
                self.intrinsics_tracker.record_snapshot(intrinsic_id, len(pose_ids), current[intrinsic_id])

            if not self.config.FREEZE_CONVERGED_INTRINSICS:
                return set()
            return self.intrinsics_tracker.check_all(
                self.config.INTRINSICS_WINDOW_SIZE,
                self.config.INTRINSICS_STDEV_PERCENTAGE_LIMIT,
            )

    def process(self,
                scene: SceneSnapshot,
                new_view_ids: Iterable[int],
                solver: BaseLocalSolver) -> SolverReport:
        """
        Complete local BA loop: prepare, adjust, record the intrinsics.

        Returns:
            The solver report
        """
        self.prepare(scene, new_view_ids)
        report = self.adjust(solver, scene)
        if report.success:
            self.add_intrinsics_to_history(scene, report.focal_lengths)
        self.history.append(self.statistics)
        return report

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_intrinsics_history(self, folder: str):
        return export_intrinsics_history(self.intrinsics_tracker, folder)

    def export_distances_histogram(self, filepath: str):
        return export_distances_histogram(self.get_distances_histogram(), filepath)

    def summary(self) -> str:
        graph = self.graph.summary()
        return (f"LocalBAScheduler: {graph['views']} views, {graph['match_edges']} match edges, "
                f"{len(self.intrinsics_tracker)} tracked intrinsics, "
                f"{sum(self.intrinsics_tracker.frozen_flags().values())} frozen")
