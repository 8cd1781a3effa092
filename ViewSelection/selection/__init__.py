"""
Camera Selection
================

Weighted random choice of (main, side) camera pairs and the resulting bundles.
"""

from .pair_sampler import PairVoteTable, pair_key, first_exceeding, weighted_draw, choose_main, choose_side
from .bundles import BundleTable, BundleIterator, SENTINEL
from .camera_selector import CameraSelector, SHOT_COUNT

__all__ = [
    'PairVoteTable',
    'pair_key',
    'first_exceeding',
    'weighted_draw',
    'choose_main',
    'choose_side',
    'BundleTable',
    'BundleIterator',
    'SENTINEL',
    'CameraSelector',
    'SHOT_COUNT',
]
