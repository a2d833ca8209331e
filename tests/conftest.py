import pytest

from helpers import RecordingSolver, make_scene, shared_landmarks

from LocalBundleAdjustment.graph.distance_graph import DistanceGraph


@pytest.fixture
def chain_graph():
    """1 - 2 - 3 connected by match edges, 4 isolated"""
    graph = DistanceGraph(min_shared_landmarks=100)
    graph.update_with_matches({(1, 2): 150, (2, 3): 120}, frontier_view_ids=[1, 2, 3, 4])
    return graph


@pytest.fixture
def chain_scene():
    """
    Five posed views on a chain 0-1-2-3-4 (150 shared landmarks between
    neighbours), views 0-2 on intrinsic 0 and 3-4 on intrinsic 1.
    """
    views = {v: (v, 0 if v < 3 else 1) for v in range(5)}
    landmarks = {}
    for v in range(4):
        landmarks.update(shared_landmarks(1000 * v, 150, v, v + 1))
    return make_scene(views, landmarks, focal_lengths={0: 1000.0, 1: 1500.0})


@pytest.fixture
def recording_solver():
    return RecordingSolver()
