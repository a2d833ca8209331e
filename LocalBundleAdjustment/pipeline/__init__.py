from .local_ba import LocalBAScheduler

__all__ = [
    'LocalBAScheduler',
]
