"""
Shared fixtures for the ViewSelection tests
"""

import sys
from pathlib import Path

import numpy as np
import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from ViewSelection.config import HeuristicConfig
from ViewSelection.core import Mesh, look_at_camera
from ViewSelection.visibility import DepthRenderer, BACKGROUND_DEPTH


CUBE_VERTICES = np.array([
    [-1, -1, -1], [1, -1, -1], [1, 1, -1], [-1, 1, -1],
    [-1, -1, 1], [1, -1, 1], [1, 1, 1], [-1, 1, 1],
], dtype=np.float64)

# counter-clockwise seen from outside, so that face normals point outwards
CUBE_FACES = np.array([
    [0, 3, 2], [0, 2, 1],   # z = -1
    [4, 5, 6], [4, 6, 7],   # z = +1
    [0, 1, 5], [0, 5, 4],   # y = -1
    [3, 7, 6], [3, 6, 2],   # y = +1
    [0, 4, 7], [0, 7, 3],   # x = -1
    [1, 2, 6], [1, 6, 5],   # x = +1
])


class BackgroundRenderer(DepthRenderer):
    """Renderer that never sees any geometry"""

    def __init__(self, width: int = 64, height: int = 48):
        super().__init__(width, height)
        self.loaded = None
        self.calls = 0

    def load_mesh(self, mesh):
        self.loaded = mesh

    def depth(self, viewer):
        self.calls += 1
        return np.full((self.height, self.width), BACKGROUND_DEPTH)


class FixedRandom:
    """Stand-in for numpy's Generator that replays preset uniform draws"""

    def __init__(self, values):
        self.values = list(values)

    def random(self):
        return self.values.pop(0)


@pytest.fixture
def cube_mesh():
    return Mesh.from_cartesian(CUBE_VERTICES, CUBE_FACES)


@pytest.fixture
def ring_cameras():
    """Four cameras around the cube, each side face seen by two of them"""
    centers = [(3, 3, 0), (3, -3, 0), (-3, 3, 0), (-3, -3, 0)]
    return [look_at_camera(c, (0, 0, 0), focal=1.0, near=0.01, far=100.0) for c in centers]


@pytest.fixture
def small_config():
    return HeuristicConfig(width=64, height=48, camera_threshold=1.0, seed=42, verbosity=0)


@pytest.fixture
def rng():
    return np.random.default_rng(42)
