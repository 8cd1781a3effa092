"""
Density Filtering
=================

Removes outliers and near-duplicate points from a reconstructed point cloud.

The local density of every point is estimated by a clamped power iteration
over the neighbor graph. Points are then visited in descending density: a
point with enough support is kept and suppresses the support of its
neighbors, so that only a few representatives of every dense cluster survive.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..logger import get_logger
from ..core.geometry import dehomogenize
from .neighbor_graph import NeighborGraph

MAX_ITERATIONS = 200
CONVERGENCE_LIMIT = 1e-6
DENSITY_CLAMP = 2.0
# all points below this score are considered outliers
DENSITY_LIMIT = 0.7


@dataclass
class FilterStatistics:
    """Summary of one filtering pass"""
    input_count: int
    kept_count: int
    edge_count: int
    iterations: int
    converged: bool


class DensityEstimator:
    """
    Iterative density estimation and greedy thinning of a point cloud.
    """

    def __init__(self,
                 max_iterations: int = MAX_ITERATIONS,
                 tolerance: float = CONVERGENCE_LIMIT,
                 density_limit: float = DENSITY_LIMIT):
        self.max_iterations = max_iterations
        self.tolerance = tolerance
        self.density_limit = density_limit
        self.last_statistics: Optional[FilterStatistics] = None
        self.logger = get_logger("Filter")

    def estimate(self, graph: NeighborGraph) -> Tuple[np.ndarray, np.ndarray, int, bool]:
        """
        Power iteration with clamping.

        Every stored edge contributes to both of its endpoints. Densities are
        normalized so that they average to one over the weighted mass of the
        graph, then clamped to [0, 2].

        Args:
            graph: Neighbor graph of the point cloud

        Returns:
            density: Converged density per point
            score: Normalized neighbor support of the last round, before clamping
            iterations: Number of rounds performed
            converged: Whether the mean squared change fell below the tolerance
        """
        n = graph.num_points
        density = np.ones(n)
        score = np.zeros(n)
        if n == 0:
            return density, score, 0, True

        adjacency = graph.symmetric()
        iterations = 0
        change = np.inf
        while True:
            support = adjacency @ density
            # sum of (density[i] + density[j]) * w over the stored edges
            mass = support.sum()
            iterations += 1
            if mass <= 0:
                # no weighted edges: no evidence to update from
                score = np.zeros(n)
                change = 0.0
                break

            score = support * (n / mass)
            normalized = np.minimum(score, DENSITY_CLAMP)
            change = np.mean((density - normalized) ** 2)
            density = normalized
            if change <= self.tolerance or iterations >= self.max_iterations:
                break

        return density, score, iterations, change <= self.tolerance

    def select(self, graph: NeighborGraph, density: np.ndarray, score: np.ndarray) -> np.ndarray:
        """
        Greedy selection along descending density.

        Args:
            graph: Neighbor graph
            density: Density per point
            score: Support per point; consumed (a copy is modified)

        Returns:
            Sorted indices of the retained points
        """
        n = graph.num_points
        if n == 0:
            return np.zeros(0, dtype=np.int64)

        score = np.array(score, dtype=np.float64)
        adjacency = graph.symmetric()
        isolated = graph.evidence_degree() == 0
        order = np.argsort(-density, kind='stable')

        kept = []
        for idx in order:
            if isolated[idx]:
                kept.append(idx)
                continue
            if score[idx] < self.density_limit:
                continue

            # subtract density to get rid of close neighbors
            start, end = adjacency.indptr[idx], adjacency.indptr[idx + 1]
            score[adjacency.indices[start:end]] -= density[idx] * adjacency.data[start:end]
            kept.append(idx)

        return np.sort(np.asarray(kept, dtype=np.int64))

    def filter_points(self, points: np.ndarray, normals: np.ndarray,
                      radius: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        Filter outliers and redundant points from the given point cloud.

        Args:
            points: Homogeneous points (N, 4)
            normals: Normal/confidence vectors (N, k), parallel to points
            radius: Neighborhood radius

        Returns:
            filtered_points: Retained points, in their original order
            filtered_normals: Matching normals
        """
        points = np.asarray(points)
        normals = np.asarray(normals)
        if len(points) != len(normals):
            raise ValueError(f"Points and normals differ in length: {len(points)} != {len(normals)}")

        self.logger.info("Filtering: Preparing neighbor table...")
        graph = NeighborGraph.build(dehomogenize(points), radius)
        if graph.num_points:
            self.logger.debug(
                f" Neighbors total: {graph.num_edges}, "
                f"{graph.num_edges / graph.num_points:5.1f} per point."
            )

        self.logger.info("Estimating local density...")
        density, score, iterations, converged = self.estimate(graph)
        self.logger.debug(
            f" Density converged in {iterations} iterations. Limit set to: {self.density_limit}"
        )
        if not converged:
            self.logger.warning(f"Density estimate did not converge in {iterations} iterations")

        retained = self.select(graph, density, score)

        self.last_statistics = FilterStatistics(
            input_count=len(points),
            kept_count=len(retained),
            edge_count=graph.num_edges,
            iterations=iterations,
            converged=converged
        )
        self.logger.info(f"✓ Kept {len(retained)}/{len(points)} points")

        return points[retained], normals[retained]
