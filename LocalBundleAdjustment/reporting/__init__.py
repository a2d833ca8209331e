from .export import export_distances_histogram, export_intrinsics_history
from .timing import LocalBAStep, TimeSummary

__all__ = [
    'LocalBAStep',
    'TimeSummary',
    'export_distances_histogram',
    'export_intrinsics_history',
]
