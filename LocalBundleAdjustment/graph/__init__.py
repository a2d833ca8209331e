"""
Graph Module

Connectivity between registered views and distances from the newly resected
ones.

Components:
- DistanceGraph: views linked by shared landmarks, plus temporary intrinsic coupling
- count_shared_landmarks_per_pair: shared landmark counts between new and old views
- GraphDistanceEngine: multi-source BFS distances for views and poses

Usage:
    from LocalBundleAdjustment.graph import DistanceGraph, GraphDistanceEngine

    graph = DistanceGraph(min_shared_landmarks=100)
    graph.update_with_matches(counts, frontier_view_ids=new_views)

    with graph.intrinsic_coupling(views_by_intrinsic):
        distances = GraphDistanceEngine().compute_distances(graph, new_views)
"""

from .distance_graph import COUPLING_EDGE, MATCH_EDGE, DistanceGraph, normalize_pair
from .distances import UNREACHABLE, GraphDistanceEngine, distances_histogram, max_finite_distance
from .matches import count_shared_landmarks_per_pair

__all__ = [
    'DistanceGraph',
    'GraphDistanceEngine',
    'count_shared_landmarks_per_pair',
    'distances_histogram',
    'max_finite_distance',
    'normalize_pair',
    'MATCH_EDGE',
    'COUPLING_EDGE',
    'UNREACHABLE',
]
