"""
Diagnostics export for the local BA.

Files written:
    K<intrinsic_id>.txt   one `pose_count focal_length` line per snapshot
    <histogram file>      one `distance count` line per graph distance
"""

from pathlib import Path
from typing import List, Mapping

from LocalBundleAdjustment.logger import get_logger
from LocalBundleAdjustment.scheduling.convergence import IntrinsicsConvergenceTracker

logger = get_logger("reporting.export")


def export_intrinsics_history(tracker: IntrinsicsConvergenceTracker, folder: str) -> List[Path]:
    """
    Save the focal length history of every intrinsic.

    Args:
        tracker: Tracker holding the histories
        folder: Output directory (created if needed)

    Returns:
        Paths of the written files
    """
    output_dir = Path(folder)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for intrinsic_id in tracker.intrinsic_ids():
        filepath = output_dir / f"K{intrinsic_id}.txt"
        with open(filepath, 'w') as f:
            for pose_count, focal_length in tracker.history(intrinsic_id):
                f.write(f"{pose_count} {focal_length}\n")
        written.append(filepath)

    logger.info(f"Exported {len(written)} intrinsics histories to {output_dir}")
    return written


def export_distances_histogram(histogram: Mapping[int, int], filepath: str) -> Path:
    """
    Save the number of cameras at each graph distance.

    Args:
        histogram: distance -> count
        filepath: Output file

    Returns:
        Path of the written file
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        for distance, count in sorted(histogram.items()):
            f.write(f"{distance} {count}\n")
    return path
