"""
Core data structures shared by the filtering, visibility and selection stages.
"""

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np


@dataclass
class Mesh:
    """
    Triangle mesh in homogeneous coordinates.

    Attributes:
        vertices: Vertex positions (N, 4), homogeneous
        faces: Vertex index triples (M, 3)
    """
    vertices: np.ndarray
    faces: np.ndarray

    def __post_init__(self):
        self.vertices = np.asarray(self.vertices, dtype=np.float64)
        self.faces = np.asarray(self.faces, dtype=np.int64).reshape(-1, 3)
        if self.vertices.ndim != 2 or self.vertices.shape[1] != 4:
            raise ValueError(f"Mesh vertices must be (N, 4) homogeneous, got {self.vertices.shape}")
        if len(self.faces) and (self.faces.min() < 0 or self.faces.max() >= len(self.vertices)):
            raise ValueError("Mesh faces reference vertices out of range")

    @classmethod
    def from_cartesian(cls, vertices: np.ndarray, faces: np.ndarray) -> 'Mesh':
        """Build a mesh from (N, 3) Cartesian vertices"""
        vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        return cls(np.hstack([vertices, np.ones((len(vertices), 1))]), faces)

    @property
    def num_vertices(self) -> int:
        return len(self.vertices)

    @property
    def num_faces(self) -> int:
        return len(self.faces)

    def __repr__(self) -> str:
        return f"Mesh(vertices={self.num_vertices}, faces={self.num_faces})"


@dataclass
class CameraLabel:
    """
    Camera as seen from a sampled surface point.

    Only valid for the query that produced it.

    Attributes:
        index: Camera index in the sequence
        cos_from_viewer: Cosine of the angle between the viewer axis and the ray to the camera
        distance: Distance of the point to the camera, along the camera axis
        view_x: Normalized x coordinate of the camera in the viewer image
        view_y: Normalized y coordinate of the camera in the viewer image
    """
    index: int
    cos_from_viewer: float = 0.0
    distance: float = 0.0
    view_x: float = 0.0
    view_y: float = 0.0

    def __repr__(self) -> str:
        return (f"CameraLabel(index={self.index}, cos={self.cos_from_viewer:.3f}, "
                f"distance={self.distance:.3f})")


class LabelledCamera(NamedTuple):
    """A camera that passed the visibility tests, with its label"""
    label: CameraLabel
    matrix: np.ndarray
