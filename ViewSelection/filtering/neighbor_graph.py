"""
Neighbor Graph
==============

Sparse proximity relation over a 3D point set, built from radius queries.

Each undirected edge is stored once, on the higher-indexed endpoint: the
neighbors of point i listed in its slice all have an index lower than i.
Consumers must treat every stored edge as going both ways.
"""

from dataclasses import dataclass

import numpy as np
from scipy import sparse
from scipy.spatial import cKDTree

from ..logger import get_logger


def density_weight(distance, radius: float):
    """Linear decay of the normalized distance: 1 at the point itself, 0 at the radius"""
    return np.maximum(1.0 - np.asarray(distance, dtype=np.float64) / radius, 0.0)


@dataclass
class NeighborGraph:
    """
    Flattened one-directional adjacency.

    Attributes:
        offsets: (N + 1,) slice boundaries; neighbors of i are
                 neighbors[offsets[i]:offsets[i + 1]]
        neighbors: (E,) lower-indexed neighbor of each stored edge
        weights: (E,) edge weights in [0, 1]
    """
    offsets: np.ndarray
    neighbors: np.ndarray
    weights: np.ndarray

    @property
    def num_points(self) -> int:
        return len(self.offsets) - 1

    @property
    def num_edges(self) -> int:
        return len(self.neighbors)

    def owners(self) -> np.ndarray:
        """Higher-indexed endpoint of every stored edge"""
        return np.repeat(np.arange(self.num_points), np.diff(self.offsets))

    def neighbors_of(self, i: int):
        """Stored (neighbor, weight) arrays of point i"""
        start, end = self.offsets[i], self.offsets[i + 1]
        return self.neighbors[start:end], self.weights[start:end]

    def symmetric(self) -> sparse.csr_matrix:
        """Both directions of every edge as an (N, N) sparse weight matrix"""
        n = self.num_points
        owners = self.owners()
        rows = np.concatenate([owners, self.neighbors])
        cols = np.concatenate([self.neighbors, owners])
        data = np.concatenate([self.weights, self.weights])
        return sparse.csr_matrix((data, (rows, cols)), shape=(n, n))

    def evidence_degree(self) -> np.ndarray:
        """Number of positive-weight edges touching each point, in both directions"""
        positive = self.weights > 0
        n = self.num_points
        return (np.bincount(self.owners()[positive], minlength=n)
                + np.bincount(self.neighbors[positive], minlength=n))

    @classmethod
    def empty(cls, num_points: int) -> 'NeighborGraph':
        return cls(np.zeros(num_points + 1, dtype=np.int64),
                   np.zeros(0, dtype=np.int64),
                   np.zeros(0, dtype=np.float64))

    @classmethod
    def build(cls, points3: np.ndarray, radius: float) -> 'NeighborGraph':
        """
        Build the graph with a KD-tree radius query.

        Args:
            points3: Cartesian points (N, 3)
            radius: Neighborhood radius; pairs farther apart are not connected

        Returns:
            NeighborGraph over the points
        """
        logger = get_logger("Filter")
        points3 = np.asarray(points3, dtype=np.float64).reshape(-1, 3)
        n = len(points3)

        if n == 0 or not radius > 0:
            if n and not radius > 0:
                logger.warning(f"Non-positive filtering radius {radius}, no neighbors collected")
            return cls.empty(n)

        tree = cKDTree(points3)
        pairs = tree.query_pairs(radius, output_type='ndarray')
        if len(pairs) == 0:
            return cls.empty(n)

        low = np.minimum(pairs[:, 0], pairs[:, 1]).astype(np.int64)
        high = np.maximum(pairs[:, 0], pairs[:, 1]).astype(np.int64)
        distances = np.linalg.norm(points3[high] - points3[low], axis=1)

        within = distances <= radius
        low, high, distances = low[within], high[within], distances[within]

        order = np.lexsort((low, high))
        low, high, distances = low[order], high[order], distances[order]

        offsets = np.zeros(n + 1, dtype=np.int64)
        offsets[1:] = np.cumsum(np.bincount(high, minlength=n))

        return cls(offsets, low, density_weight(distances, radius))
