import pytest

from helpers import RecordingSolver, make_scene, shared_landmarks

from LocalBundleAdjustment import LocalBAConfig, LocalBAScheduler, LocalBAState, LocalBAStep
from LocalBundleAdjustment.core.interfaces.base_solver import SolverStatus
from LocalBundleAdjustment.data import MockLocalSolver, MockSceneGenerator
from LocalBundleAdjustment.graph.distance_graph import MATCH_EDGE

REFINED = LocalBAState.REFINED
CONSTANT = LocalBAState.CONSTANT
IGNORED = LocalBAState.IGNORED


def test_prepare_classifies_chain(chain_scene):
    scheduler = LocalBAScheduler()
    states = scheduler.prepare(chain_scene, new_view_ids={4})

    # Intrinsic coupling links 0 and 2, so view 0 is 3 hops away instead of 4
    assert scheduler.view_distances == {4: 0, 3: 1, 2: 2, 1: 3, 0: 3}
    assert scheduler.get_pose_distance(0) == 3

    assert states.poses == {4: REFINED, 3: REFINED, 2: CONSTANT, 1: CONSTANT, 0: CONSTANT}
    assert states.intrinsics == {0: CONSTANT, 1: REFINED}
    assert states.landmark_state(3000) is REFINED   # seen by 3 and 4
    assert states.landmark_state(2000) is REFINED   # seen by 2 and 3
    assert states.landmark_state(1000) is CONSTANT  # seen by 1 and 2
    assert states.landmark_state(0) is CONSTANT     # seen by 0 and 1


def test_coupling_edges_do_not_survive_a_cycle(chain_scene):
    scheduler = LocalBAScheduler()
    scheduler.prepare(chain_scene, new_view_ids={4})

    assert scheduler.graph.num_coupling_edges == 0
    assert scheduler.graph.edge_endpoints() == {(0, 1), (1, 2), (2, 3), (3, 4)}
    assert scheduler.graph.edge_endpoints(MATCH_EDGE) == scheduler.graph.edge_endpoints()


def test_distances_without_coupling(chain_scene):
    scheduler = LocalBAScheduler(use_intrinsic_coupling=False)
    scheduler.prepare(chain_scene, new_view_ids={4})
    assert scheduler.get_view_distance(0) == 4


def test_constant_distance_limit(chain_scene):
    scheduler = LocalBAScheduler(use_intrinsic_coupling=False, constant_distance_limit=2)
    states = scheduler.prepare(chain_scene, new_view_ids={4})

    assert states.poses == {4: REFINED, 3: REFINED, 2: CONSTANT, 1: IGNORED, 0: IGNORED}
    assert states.landmark_state(0) is IGNORED
    assert scheduler.get_number_of_constant_and_refined_cameras() == 3


def test_graph_grows_incrementally():
    views = {v: (v, 0) for v in range(5)}
    landmarks = {}
    for v in range(4):
        landmarks.update(shared_landmarks(1000 * v, 150, v, v + 1))
    first = make_scene({v: (p if v < 3 else None, i) for v, (p, i) in views.items()}, landmarks, {0: 1000.0})
    second = make_scene(views, landmarks, {0: 1000.0})

    scheduler = LocalBAScheduler(use_intrinsic_coupling=False)
    scheduler.prepare(first, new_view_ids={2})
    assert scheduler.graph.view_ids() == {0, 1, 2}
    assert scheduler.graph.num_match_edges == 2

    states = scheduler.prepare(second, new_view_ids={3, 4})
    assert scheduler.graph.view_ids() == {0, 1, 2, 3, 4}
    assert scheduler.graph.num_match_edges == 4
    assert scheduler.view_distances == {3: 0, 4: 0, 2: 1, 1: 2, 0: 3}
    assert states.pose_state(2) is REFINED
    assert states.pose_state(1) is CONSTANT


def test_first_cycle_without_new_views_ignores_everything(chain_scene):
    scheduler = LocalBAScheduler()
    states = scheduler.prepare(chain_scene, new_view_ids=set())

    assert set(states.poses.values()) == {IGNORED}
    assert set(states.intrinsics.values()) == {IGNORED}
    assert set(states.landmarks.values()) == {IGNORED}


def test_empty_scene():
    scheduler = LocalBAScheduler()
    states = scheduler.prepare(make_scene({}), new_view_ids={1})
    assert states.is_empty()
    assert scheduler.get_distances_histogram() == {}


def test_unknown_queries_raise_key_error(chain_scene):
    scheduler = LocalBAScheduler()
    scheduler.prepare(chain_scene, new_view_ids={4})

    with pytest.raises(KeyError):
        scheduler.get_view_distance(99)
    with pytest.raises(KeyError):
        scheduler.get_pose_distance(99)
    with pytest.raises(KeyError):
        scheduler.get_pose_state(99)
    with pytest.raises(KeyError):
        scheduler.get_landmark_state(-5)


def test_remove_views_from_graph(chain_scene):
    scheduler = LocalBAScheduler(use_intrinsic_coupling=False)
    scheduler.prepare(chain_scene, new_view_ids={4})

    assert not scheduler.remove_views_from_graph([4, 99])
    assert scheduler.graph.view_ids() == {0, 1, 2, 3}
    assert scheduler.new_view_ids == set()
    with pytest.raises(KeyError):
        scheduler.get_view_distance(4)


def test_removed_view_takes_its_pose_along(chain_scene):
    scheduler = LocalBAScheduler()
    scheduler.prepare(chain_scene, new_view_ids={4})

    assert scheduler.remove_views_from_graph([4])
    with pytest.raises(KeyError):
        scheduler.get_pose_distance(4)
    with pytest.raises(KeyError):
        scheduler.get_pose_state(4)

    assert scheduler.pose_distances == {3: 1, 2: 2, 1: 3, 0: 3}
    assert scheduler.get_distances_histogram() == {1: 1, 2: 1, 3: 2}
    assert scheduler.statistics.num_cameras_per_distance == {1: 1, 2: 1, 3: 2}
    assert scheduler.statistics.num_refined_poses == 1
    assert scheduler.get_number_of_constant_and_refined_cameras() == 4


def test_pose_shared_by_remaining_view_survives_removal():
    views = {1: (10, 0), 2: (10, 0), 3: (11, 0)}
    landmarks = {**shared_landmarks(0, 150, 1, 3), **shared_landmarks(1000, 150, 2, 3)}
    scheduler = LocalBAScheduler(use_intrinsic_coupling=False)
    scheduler.prepare(make_scene(views, landmarks, {0: 1000.0}), new_view_ids={3})

    scheduler.remove_views_from_graph([1])
    assert scheduler.get_pose_distance(10) == 1
    assert scheduler.get_pose_state(10) is REFINED


def test_histogram_counts_poses(chain_scene):
    scheduler = LocalBAScheduler(use_intrinsic_coupling=False)
    scheduler.prepare(chain_scene, new_view_ids={2})
    assert scheduler.get_distances_histogram() == {0: 1, 1: 2, 2: 2}


def test_process_records_statistics_and_history(chain_scene):
    solver = RecordingSolver(focal_lengths={1: 1490.0})
    scheduler = LocalBAScheduler()

    report = scheduler.process(chain_scene, {4}, solver)

    assert report.success
    assert len(solver.calls) == 1
    assert solver.calls[0] is scheduler.states

    stats = scheduler.statistics
    assert stats.new_view_ids == {4}
    assert stats.num_refined_poses == 2
    assert stats.num_constant_poses == 3
    assert stats.num_refined_intrinsics == 1
    assert stats.num_constant_intrinsics == 1
    assert stats.num_residual_blocks == 12
    assert stats.final_rmse == 0.5
    assert scheduler.history == [stats]

    # Pose counts per intrinsic and the solver's focal override
    assert scheduler.intrinsics_tracker.history(0) == [(3, 1000.0)]
    assert scheduler.intrinsics_tracker.history(1) == [(2, 1490.0)]


def test_converged_intrinsic_becomes_constant(chain_scene):
    scheduler = LocalBAScheduler(intrinsics_window_size=2)
    solver = RecordingSolver()

    scheduler.process(chain_scene, {4}, solver)
    assert scheduler.states.intrinsic_state(1) is REFINED

    # Second identical snapshot: zero variation, intrinsic 1 freezes
    scheduler.process(chain_scene, {4}, solver)
    assert scheduler.intrinsics_tracker.is_frozen(1)

    states = scheduler.prepare(chain_scene, {4})
    assert states.intrinsic_state(1) is CONSTANT
    assert states.pose_state(4) is REFINED


def test_freezing_can_be_disabled(chain_scene):
    scheduler = LocalBAScheduler(intrinsics_window_size=2, freeze_converged_intrinsics=False)
    solver = RecordingSolver()
    for _ in range(3):
        scheduler.process(chain_scene, {4}, solver)

    assert not any(scheduler.intrinsics_tracker.frozen_flags().values())
    assert scheduler.states.intrinsic_state(1) is REFINED


def test_adjust_skips_empty_problem():
    scheduler = LocalBAScheduler()
    solver = RecordingSolver()
    scheduler.prepare(make_scene({}), new_view_ids=set())

    report = scheduler.adjust(solver, make_scene({}))
    assert not report.success
    assert report.status is SolverStatus.INVALID_INPUT
    assert solver.calls == []


def test_phases_are_timed(chain_scene):
    scheduler = LocalBAScheduler()
    scheduler.process(chain_scene, {4}, RecordingSolver())

    times = scheduler.time_summary.as_dict()
    assert set(times) == {step.value for step in LocalBAStep}
    assert all(seconds >= 0.0 for seconds in times.values())
    assert scheduler.time_summary.total_time == pytest.approx(sum(times.values()))


def test_config_and_overrides_are_exclusive():
    with pytest.raises(ValueError):
        LocalBAScheduler(LocalBAConfig(), refined_distance_limit=2)


def test_mock_sequence_keeps_invariants():
    generator = MockSceneGenerator(num_views=15, num_intrinsics=2, landmarks_per_view=150, seed=0)
    solver = MockLocalSolver(seed=0)
    scheduler = LocalBAScheduler(intrinsics_window_size=3)

    focal_lengths = {}
    frozen_before = {}
    num_registered = 2
    for batch in generator.batches(batch_size=2, initial_views=num_registered):
        num_registered += len(batch)
        scene = generator.scene_at(num_registered, focal_lengths)

        report = scheduler.process(scene, batch, solver)
        focal_lengths.update(report.focal_lengths)

        assert scheduler.graph.view_ids() == scene.posed_view_ids()
        assert scheduler.graph.num_coupling_edges == 0
        assert scheduler.graph.nodes.is_consistent()
        for view_id in batch:
            assert scheduler.get_view_distance(view_id) == 0
            assert scheduler.get_pose_state(view_id) is REFINED

        frozen_now = scheduler.intrinsics_tracker.frozen_flags()
        for intrinsic_id, was_frozen in frozen_before.items():
            assert frozen_now[intrinsic_id] or not was_frozen
        frozen_before = frozen_now

    assert len(scheduler.history) == len(list(generator.batches(batch_size=2)))
