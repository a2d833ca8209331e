"""
Distance Graph

Undirected graph over the registered views. Two views are linked by a match
edge when they share enough landmarks. Views sharing an intrinsic can be
linked temporarily by coupling edges so that the graph distance also reflects
shared calibration.
"""

from contextlib import contextmanager
from itertools import combinations
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Set, Tuple

import networkx as nx

from LocalBundleAdjustment.core.structures.bimap import BidirectionalMap
from LocalBundleAdjustment.logger import get_logger

logger = get_logger("graph.distance_graph")

MATCH_EDGE = 'match'
COUPLING_EDGE = 'intrinsic'

ViewPair = Tuple[int, int]


def normalize_pair(view_a: int, view_b: int) -> ViewPair:
    return (view_a, view_b) if view_a <= view_b else (view_b, view_a)


class DistanceGraph:
    """
    Graph of registered views used to measure how far every view is from the
    newly resected ones.

    Nodes are internal handles; `self.nodes` maps handle <-> view id.

    Usage:
        graph = DistanceGraph(min_shared_landmarks=100)
        graph.update_with_matches({(1, 2): 150}, frontier_view_ids={1, 2})

        with graph.intrinsic_coupling({0: {1, 3}}):
            distances = GraphDistanceEngine().compute_distances(graph, {3})
    """

    def __init__(self, min_shared_landmarks: int = 100):
        self.min_shared_landmarks = min_shared_landmarks
        self.nodes: BidirectionalMap = BidirectionalMap()
        self._graph = nx.Graph()
        self._next_handle = 0
        self._coupling_edges: Set[FrozenSet[int]] = set()

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def add_view(self, view_id: int) -> bool:
        """
        Insert a node for view_id.

        Returns:
            True if a node was created, False if the view was already present
        """
        if self.nodes.has_value(view_id):
            return False
        handle = self._next_handle
        self._next_handle += 1
        self._graph.add_node(handle)
        self.nodes.put(handle, view_id)
        return True

    def remove_views(self, view_ids: Iterable[int]) -> bool:
        """
        Remove the nodes of view_ids together with all their incident edges.

        Known views are removed even if some ids in the batch are unknown.

        Returns:
            True if every requested view existed and was removed
        """
        requested = set(view_ids)
        num_removed = 0
        for view_id in requested:
            if not self.nodes.has_value(view_id):
                logger.warning(f"Cannot remove view {view_id}: not in the distance graph")
                continue
            handle = self.nodes.pop_value(view_id)
            self._coupling_edges = {e for e in self._coupling_edges if handle not in e}
            self._graph.remove_node(handle)
            num_removed += 1

        if num_removed != len(requested):
            logger.warning(f"Removed {num_removed}/{len(requested)} views from the distance graph")
            return False
        logger.debug(f"Removed {num_removed} views from the distance graph")
        return True

    def has_view(self, view_id: int) -> bool:
        return self.nodes.has_value(view_id)

    def view_ids(self) -> Set[int]:
        return set(self.nodes.values())

    @property
    def num_views(self) -> int:
        return self._graph.number_of_nodes()

    def is_empty(self) -> bool:
        return self.num_views == 0

    # ------------------------------------------------------------------
    # Match edges
    # ------------------------------------------------------------------

    def update_with_matches(self,
                            shared_landmark_counts: Mapping[ViewPair, int],
                            frontier_view_ids: Iterable[int]) -> int:
        """
        Add the frontier views and link every pair sharing enough landmarks.

        Args:
            shared_landmark_counts: (view_a, view_b) -> number of shared landmarks
            frontier_view_ids: Views to insert before the edges

        Returns:
            Number of match edges added
        """
        num_new_nodes = sum(1 for view_id in frontier_view_ids if self.add_view(view_id))

        num_added = 0
        for (view_a, view_b), count in shared_landmark_counts.items():
            if count < self.min_shared_landmarks:
                continue
            if view_a == view_b:
                logger.warning(f"Ignoring self pair ({view_a}, {view_b})")
                continue
            if not (self.nodes.has_value(view_a) and self.nodes.has_value(view_b)):
                logger.warning(f"Ignoring pair ({view_a}, {view_b}): view not in the distance graph")
                continue

            u, v = self.nodes.key(view_a), self.nodes.key(view_b)
            if self._graph.has_edge(u, v):
                if frozenset((u, v)) in self._coupling_edges:
                    # Leftover coupling edge becomes a real match edge
                    self._coupling_edges.discard(frozenset((u, v)))
                    self._graph.edges[u, v]['kind'] = MATCH_EDGE
                    num_added += 1
                continue
            self._graph.add_edge(u, v, kind=MATCH_EDGE)
            num_added += 1

        logger.info(f"Distance graph updated: +{num_new_nodes} nodes, +{num_added} edges "
                    f"({self.num_views} nodes, {self.num_match_edges} edges)")
        return num_added

    @property
    def num_match_edges(self) -> int:
        return sum(1 for _, _, kind in self._graph.edges(data='kind') if kind == MATCH_EDGE)

    # ------------------------------------------------------------------
    # Intrinsic coupling edges
    # ------------------------------------------------------------------

    def add_intrinsic_coupling_edges(self, views_by_intrinsic: Mapping[int, Iterable[int]]) -> int:
        """
        Link every pair of views sharing an intrinsic.

        Pairs already connected are skipped so that no edge is duplicated.

        Args:
            views_by_intrinsic: intrinsic id -> views using it

        Returns:
            Number of coupling edges added
        """
        num_added = 0
        for intrinsic_id, view_ids in views_by_intrinsic.items():
            handles = []
            for view_id in sorted(set(view_ids)):
                if self.nodes.has_value(view_id):
                    handles.append(self.nodes.key(view_id))
                else:
                    logger.debug(f"Intrinsic {intrinsic_id}: view {view_id} not in the distance graph")
            if len(handles) < 2:
                continue

            for u, v in combinations(handles, 2):
                if self._graph.has_edge(u, v):
                    continue
                self._graph.add_edge(u, v, kind=COUPLING_EDGE)
                self._coupling_edges.add(frozenset((u, v)))
                num_added += 1

        logger.debug(f"Added {num_added} intrinsic coupling edges")
        return num_added

    def remove_intrinsic_coupling_edges(self) -> int:
        """
        Remove the coupling edges added by `add_intrinsic_coupling_edges`.

        Returns:
            Number of edges removed (0 if none were present)
        """
        num_removed = 0
        for edge in self._coupling_edges:
            u, v = tuple(edge)
            if self._graph.has_edge(u, v):
                self._graph.remove_edge(u, v)
                num_removed += 1
        self._coupling_edges.clear()
        if num_removed:
            logger.debug(f"Removed {num_removed} intrinsic coupling edges")
        return num_removed

    @contextmanager
    def intrinsic_coupling(self, views_by_intrinsic: Mapping[int, Iterable[int]]) -> Iterator[int]:
        """
        Context manager keeping the coupling edges only for the duration of the block.

        Yields:
            Number of coupling edges added
        """
        num_added = self.add_intrinsic_coupling_edges(views_by_intrinsic)
        try:
            yield num_added
        finally:
            self.remove_intrinsic_coupling_edges()

    @property
    def num_coupling_edges(self) -> int:
        return len(self._coupling_edges)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def neighbors(self, view_id: int) -> Set[int]:
        if not self.nodes.has_value(view_id):
            raise KeyError(f"View {view_id} not in the distance graph")
        return {self.nodes.value(h) for h in self._graph.neighbors(self.nodes.key(view_id))}

    def edge_endpoints(self, kind: Optional[str] = None) -> Set[ViewPair]:
        """
        Edges as sorted (view_a, view_b) pairs.

        Args:
            kind: MATCH_EDGE, COUPLING_EDGE or None for every edge
        """
        return {
            normalize_pair(self.nodes.value(u), self.nodes.value(v))
            for u, v, edge_kind in self._graph.edges(data='kind')
            if kind is None or edge_kind == kind
        }

    def handles_of(self, view_ids: Iterable[int]) -> List[int]:
        """Node handles of the known views among view_ids"""
        return [self.nodes.key(v) for v in view_ids if self.nodes.has_value(v)]

    @property
    def nx_graph(self) -> nx.Graph:
        """Underlying networkx graph (node handles)"""
        return self._graph

    def summary(self) -> Dict[str, int]:
        return {
            'views': self.num_views,
            'match_edges': self.num_match_edges,
            'coupling_edges': self.num_coupling_edges,
        }
