"""
Mesh Processing
===============

Surface extraction from point clouds and mesh filtering.
"""

from .surface_reconstruction import SurfaceReconstructor, filter_finest, bounding_box_size

__all__ = ['SurfaceReconstructor', 'filter_finest', 'bounding_box_size']
