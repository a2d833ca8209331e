from collections import Counter, defaultdict
from typing import Dict, Iterable, Mapping, Set

from LocalBundleAdjustment.graph.distance_graph import ViewPair, normalize_pair
from LocalBundleAdjustment.logger import get_logger

logger = get_logger("graph.matches")


def count_shared_landmarks_per_pair(tracks_per_view: Mapping[int, Set[int]],
                                    new_view_ids: Iterable[int],
                                    reconstructed_view_ids: Iterable[int]) -> Dict[ViewPair, int]:
    """
    Count the landmarks shared by each new view and every reconstructed view.

    Args:
        tracks_per_view: view id -> landmarks observed by the view
        new_view_ids: Views being added to the distance graph
        reconstructed_view_ids: Posed views (may include the new ones)

    Returns:
        Dictionary mapping sorted (view_a, view_b) to their shared landmark count.
        Pairs sharing nothing are omitted.
    """
    reconstructed = set(reconstructed_view_ids)

    # landmark -> reconstructed views observing it
    views_per_landmark = defaultdict(set)
    for view_id in reconstructed:
        for landmark_id in tracks_per_view.get(view_id, ()):
            views_per_landmark[landmark_id].add(view_id)

    counts: Dict[ViewPair, int] = {}
    for new_view in set(new_view_ids):
        shared = Counter()
        for landmark_id in tracks_per_view.get(new_view, ()):
            shared.update(views_per_landmark.get(landmark_id, ()))
        shared.pop(new_view, None)

        for other_view, count in shared.items():
            counts[normalize_pair(new_view, other_view)] = count

    logger.debug(f"Counted shared landmarks for {len(counts)} view pairs")
    return counts
