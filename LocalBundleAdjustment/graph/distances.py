"""
Graph Distance Engine

Multi-source breadth-first search over the distance graph. The frontier (the
newly resected views) is at distance 0; every hop adds 1; views in another
connected component are at distance -1.
"""

from typing import Dict, Iterable, Mapping

import networkx as nx
import numpy as np

from LocalBundleAdjustment.graph.distance_graph import DistanceGraph
from LocalBundleAdjustment.logger import get_logger

logger = get_logger("graph.distances")

UNREACHABLE = -1


class GraphDistanceEngine:
    """
    Computes view and pose distances from a frontier.

    The result only depends on the graph topology at call time, including any
    coupling edges the caller left in place.
    """

    def compute_distances(self, graph: DistanceGraph, frontier_view_ids: Iterable[int]) -> Dict[int, int]:
        """
        Breadth-first distances from the frontier to every view of the graph.

        Args:
            graph: Distance graph to traverse
            frontier_view_ids: Views at distance 0

        Returns:
            view id -> distance, UNREACHABLE (-1) for disconnected views
        """
        frontier = set(frontier_view_ids)
        sources = graph.handles_of(sorted(frontier))

        missing = len(frontier) - len(sources)
        if missing:
            logger.warning(f"{missing} frontier views are not in the distance graph")

        distances = {view_id: UNREACHABLE for view_id in graph.view_ids()}
        if graph.is_empty():
            logger.warning("Distance graph is empty: no distance computed")
            return distances
        if not sources:
            logger.warning("No frontier view in the distance graph: every view is unreachable")
            return distances

        for depth, layer in enumerate(nx.bfs_layers(graph.nx_graph, sources)):
            for handle in layer:
                distances[graph.nodes.value(handle)] = depth

        num_reached = sum(1 for d in distances.values() if d != UNREACHABLE)
        logger.debug(f"BFS from {len(sources)} views reached {num_reached}/{len(distances)} views")
        return distances

    @staticmethod
    def compute_pose_distances(view_distances: Mapping[int, int],
                               pose_of_view: Mapping[int, int]) -> Dict[int, int]:
        """
        Pose distances from the view distances of the same BFS.

        A pose shared by several views takes the smallest non-negative distance
        among them; it is unreachable only if all its views are.

        Args:
            view_distances: view id -> distance
            pose_of_view: view id -> pose id (posed views only)

        Returns:
            pose id -> distance
        """
        pose_distances: Dict[int, int] = {}
        for view_id, pose_id in pose_of_view.items():
            distance = view_distances.get(view_id, UNREACHABLE)
            current = pose_distances.get(pose_id, UNREACHABLE)
            if distance == UNREACHABLE:
                pose_distances.setdefault(pose_id, UNREACHABLE)
            elif current == UNREACHABLE or distance < current:
                pose_distances[pose_id] = distance
        return pose_distances


def distances_histogram(distances: Mapping[int, int]) -> Dict[int, int]:
    """
    Number of entities at each distance.

    Returns:
        distance -> count, sorted by distance
    """
    if not distances:
        return {}
    values, counts = np.unique(np.fromiter(distances.values(), dtype=np.int64), return_counts=True)
    return {int(v): int(c) for v, c in zip(values, counts)}


def max_finite_distance(distances: Mapping[int, int]) -> int:
    """Largest distance of a reachable entity, UNREACHABLE if none"""
    return max((d for d in distances.values() if d != UNREACHABLE), default=UNREACHABLE)
