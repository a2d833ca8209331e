from .bimap import BidirectionalMap
from .scene import SceneSnapshot, View
from .states import LocalBAState, LocalBAStates
from .statistics import LocalBAStatistics

__all__ = [
    # Enumerations
    'LocalBAState',

    # Classes
    'BidirectionalMap',
    'LocalBAStates',
    'LocalBAStatistics',
    'SceneSnapshot',
    'View',
]
