#!/usr/bin/env python3
"""
Local Bundle Adjustment Scheduling - Demo Script

Runs the scheduler over a synthetic incremental reconstruction and exports
the diagnostics (intrinsics histories, distance histogram, timings, per-loop
statistics).
"""
# =============================================================================
# IMPORTS
# =============================================================================
import argparse
from pathlib import Path

from LocalBundleAdjustment import LocalBAScheduler
from LocalBundleAdjustment.data import MockLocalSolver, MockSceneGenerator
from LocalBundleAdjustment.logger import configure_root_logger, disable_console_logging, get_logger, set_level

# =============================================================================
# CONFIGURATION
# =============================================================================

OUTPUT_DIR = './local_ba_output'

# Synthetic scene
NUM_VIEWS = 40
NUM_INTRINSICS = 2
LANDMARKS_PER_VIEW = 200
BATCH_SIZE = 2
SEED = 42

logger = get_logger("run_local_ba")


def run_local_ba_demo(output_dir: str = OUTPUT_DIR,
                      num_views: int = NUM_VIEWS,
                      num_intrinsics: int = NUM_INTRINSICS,
                      batch_size: int = BATCH_SIZE,
                      refined_distance_limit: int = 1,
                      seed: int = SEED) -> LocalBAScheduler:
    """
    Simulate an incremental reconstruction driven by the local BA scheduler.

    Args:
        output_dir: Where diagnostics are written
        num_views: Views in the synthetic sequence
        num_intrinsics: Cameras shared round-robin by the views
        batch_size: Views resected per loop
        refined_distance_limit: Graph distance up to which poses are refined
        seed: Random seed

    Returns:
        The scheduler after the last loop
    """
    output = Path(output_dir)
    output.mkdir(parents=True, exist_ok=True)

    generator = MockSceneGenerator(
        num_views=num_views,
        num_intrinsics=num_intrinsics,
        landmarks_per_view=LANDMARKS_PER_VIEW,
        seed=seed,
    )
    solver = MockLocalSolver(seed=seed)
    scheduler = LocalBAScheduler(refined_distance_limit=refined_distance_limit,
                                 intrinsics_window_size=5)

    focal_lengths = {}
    num_registered = 2
    for batch in generator.batches(batch_size=batch_size, initial_views=num_registered):
        num_registered += len(batch)
        scene = generator.scene_at(num_registered, focal_lengths)

        report = scheduler.process(scene, batch, solver)
        focal_lengths.update(report.focal_lengths)

        scheduler.statistics.print_summary()
        scheduler.statistics.export(str(output / 'local_ba_statistics.txt'))

    scheduler.export_intrinsics_history(str(output / 'intrinsics'))
    scheduler.export_distances_histogram(str(output / 'distances_histogram.txt'))
    scheduler.time_summary.export_times(str(output / 'times.txt'))
    scheduler.time_summary.show_times()

    logger.info(scheduler.summary())
    return scheduler


# =============================================================================
# MAIN
# =============================================================================

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run local BA scheduling on a synthetic sequence")
    parser.add_argument('--output', default=OUTPUT_DIR, help="Output directory")
    parser.add_argument('--views', type=int, default=NUM_VIEWS, help="Number of views")
    parser.add_argument('--intrinsics', type=int, default=NUM_INTRINSICS, help="Number of intrinsics")
    parser.add_argument('--batch-size', type=int, default=BATCH_SIZE, help="Views resected per loop")
    parser.add_argument('--distance-limit', type=int, default=1, help="Refined graph distance limit")
    parser.add_argument('--log-level', default='INFO', help="Logging level")
    parser.add_argument('--log-file', default=None, help="Optional log file")
    parser.add_argument('--debug-area', action='append', default=[],
                        help="Log one area (e.g. graph, scheduling.convergence) at DEBUG level; repeatable")
    parser.add_argument('--quiet', action='store_true', help="Log to --log-file only")
    args = parser.parse_args()

    if args.quiet and not args.log_file:
        parser.error("--quiet requires --log-file")

    configure_root_logger(level=args.log_level, log_file=args.log_file)
    for area in args.debug_area:
        set_level('DEBUG', area)
    if args.quiet:
        disable_console_logging()

    run_local_ba_demo(
        output_dir=args.output,
        num_views=args.views,
        num_intrinsics=args.intrinsics,
        batch_size=args.batch_size,
        refined_distance_limit=args.distance_limit,
    )
