"""
Point Cloud Filtering
=====================

Neighbor graph construction and density based thinning of point clouds.
"""

from .neighbor_graph import NeighborGraph, density_weight
from .density_filter import DensityEstimator, FilterStatistics

__all__ = ['NeighborGraph', 'density_weight', 'DensityEstimator', 'FilterStatistics']
