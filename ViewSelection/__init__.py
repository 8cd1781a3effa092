"""
View Selection Module
=====================

View selection and point cloud refinement heuristic of a multi-view
reconstruction pipeline:
- Density based filtering of noisy reconstructed point clouds
- Visibility tests of calibrated cameras against a rendered depth buffer
- Vote based random selection of (main, side) camera pairs for stereo refinement
- Outer refinement loop control (alpha shape, then Poisson surfaces)

Architecture:
    core/        - Mesh and camera label types, geometry helpers
    filtering/   - Neighbor graph and density estimation
    visibility/  - Depth rendering and camera visibility tests
    selection/   - Pair sampling, selection loop, bundle table
    mesh/        - Surface reconstruction collaborators

Example:
    >>> from ViewSelection import RefinementHeuristic, HeuristicConfig
    >>>
    >>> heuristic = RefinementHeuristic(HeuristicConfig(width=640, height=480, seed=42))
    >>> heuristic.not_happy(points)
    >>> mesh = heuristic.tessellate(points, normals)
    >>> pair_count = heuristic.choose_cameras(mesh, cameras)
"""

from .config import HeuristicConfig
from .core import Mesh, CameraLabel
from .heuristic import RefinementHeuristic
from .selection import SENTINEL

__version__ = "1.0.0"
__all__ = [
    'HeuristicConfig',
    'Mesh',
    'CameraLabel',
    'RefinementHeuristic',
    'SENTINEL',
]
