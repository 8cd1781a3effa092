"""
Core Structures
===============

Mesh and camera label types, and the geometry helpers built on them.
"""

from .structures import Mesh, CameraLabel, LabelledCamera
from .geometry import (
    FOCAL,
    NEAR,
    FAR,
    dehomogenize,
    homogenize,
    extract_camera_center,
    projection_matrix,
    face_areas,
    face_normal,
    sample_point_in_face,
    viewer_camera,
    look_at_camera,
)

__all__ = [
    'Mesh',
    'CameraLabel',
    'LabelledCamera',
    'FOCAL',
    'NEAR',
    'FAR',
    'dehomogenize',
    'homogenize',
    'extract_camera_center',
    'projection_matrix',
    'face_areas',
    'face_normal',
    'sample_point_in_face',
    'viewer_camera',
    'look_at_camera',
]
