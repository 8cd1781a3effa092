"""
Visibility
==========

Depth rendering and camera visibility tests for sampled surface points.
"""

from .renderer import DepthRenderer, RaycastingDepthRenderer, BACKGROUND_DEPTH
from .camera_filter import filter_cameras

__all__ = ['DepthRenderer', 'RaycastingDepthRenderer', 'BACKGROUND_DEPTH', 'filter_cameras']
