from .mock_scene import MockLocalSolver, MockSceneGenerator

__all__ = [
    'MockLocalSolver',
    'MockSceneGenerator',
]
