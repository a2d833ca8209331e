import pytest

from LocalBundleAdjustment.graph.distance_graph import COUPLING_EDGE, MATCH_EDGE, DistanceGraph


def assert_nodes_consistent(graph: DistanceGraph):
    """Handle map agrees in both directions and with the networkx nodes"""
    assert graph.nodes.is_consistent()
    assert set(graph.nodes.keys()) == set(graph.nx_graph.nodes)
    assert len(graph.nodes) == graph.num_views


def test_add_view_is_idempotent():
    graph = DistanceGraph()
    assert graph.add_view(7)
    assert not graph.add_view(7)
    assert graph.num_views == 1
    assert graph.view_ids() == {7}
    assert_nodes_consistent(graph)


def test_match_edges_respect_threshold():
    graph = DistanceGraph(min_shared_landmarks=100)
    added = graph.update_with_matches({(1, 2): 150, (2, 3): 99, (1, 3): 100}, [1, 2, 3])

    assert added == 2
    assert graph.edge_endpoints(MATCH_EDGE) == {(1, 2), (1, 3)}
    assert graph.num_match_edges == 2


def test_match_edge_reinsertion_is_noop(chain_graph):
    before = chain_graph.edge_endpoints()
    added = chain_graph.update_with_matches({(2, 1): 500, (1, 2): 150}, [])
    assert added == 0
    assert chain_graph.edge_endpoints() == before


def test_pairs_with_unknown_views_are_skipped():
    graph = DistanceGraph(min_shared_landmarks=10)
    added = graph.update_with_matches({(1, 99): 50, (1, 1): 50}, [1])
    assert added == 0
    assert graph.view_ids() == {1}


def test_remove_views_drops_incident_edges(chain_graph):
    assert chain_graph.remove_views([2])

    assert chain_graph.view_ids() == {1, 3, 4}
    assert chain_graph.edge_endpoints() == set()
    assert_nodes_consistent(chain_graph)


def test_remove_views_reports_unknown_ids(chain_graph):
    assert not chain_graph.remove_views([3, 42])
    # Known view of the batch is still removed
    assert not chain_graph.has_view(3)
    assert chain_graph.edge_endpoints() == {(1, 2)}
    assert_nodes_consistent(chain_graph)


def test_coupling_edges_skip_existing_edges(chain_graph):
    added = chain_graph.add_intrinsic_coupling_edges({0: {1, 2, 4}, 1: {3}})

    # 1-2 already matched; 1-4 and 2-4 are new
    assert added == 2
    assert chain_graph.edge_endpoints(COUPLING_EDGE) == {(1, 4), (2, 4)}
    assert chain_graph.num_coupling_edges == 2


def test_coupling_ignores_views_outside_graph(chain_graph):
    assert chain_graph.add_intrinsic_coupling_edges({0: {1, 77}}) == 0
    assert chain_graph.num_coupling_edges == 0


def test_remove_coupling_restores_edge_set(chain_graph):
    before = chain_graph.edge_endpoints()
    chain_graph.add_intrinsic_coupling_edges({0: {1, 2, 3, 4}})
    assert chain_graph.edge_endpoints() != before

    chain_graph.remove_intrinsic_coupling_edges()
    assert chain_graph.edge_endpoints() == before
    assert chain_graph.edge_endpoints(MATCH_EDGE) == before

    # Idempotent
    assert chain_graph.remove_intrinsic_coupling_edges() == 0
    assert chain_graph.edge_endpoints() == before


def test_coupling_context_removes_edges_on_error(chain_graph):
    before = chain_graph.edge_endpoints()

    with pytest.raises(RuntimeError):
        with chain_graph.intrinsic_coupling({0: {1, 4}}) as num_added:
            assert num_added == 1
            assert (1, 4) in chain_graph.edge_endpoints()
            raise RuntimeError("solver blew up")

    assert chain_graph.edge_endpoints() == before
    assert chain_graph.num_coupling_edges == 0


def test_matched_coupling_edge_becomes_match_edge(chain_graph):
    chain_graph.add_intrinsic_coupling_edges({0: {3, 4}})
    assert chain_graph.edge_endpoints(COUPLING_EDGE) == {(3, 4)}

    assert chain_graph.update_with_matches({(3, 4): 200}, frontier_view_ids=[]) == 1
    assert chain_graph.num_coupling_edges == 0
    assert chain_graph.num_match_edges == 3

    # The edge now belongs to the match graph and survives the coupling cleanup
    assert chain_graph.remove_intrinsic_coupling_edges() == 0
    assert chain_graph.edge_endpoints(MATCH_EDGE) == {(1, 2), (2, 3), (3, 4)}


def test_removing_coupled_view_forgets_its_coupling_edges(chain_graph):
    chain_graph.add_intrinsic_coupling_edges({0: {1, 4}})
    assert chain_graph.remove_views([4])
    assert chain_graph.num_coupling_edges == 0
    assert chain_graph.remove_intrinsic_coupling_edges() == 0


def test_neighbors(chain_graph):
    assert chain_graph.neighbors(2) == {1, 3}
    assert chain_graph.neighbors(4) == set()
    with pytest.raises(KeyError):
        chain_graph.neighbors(100)
