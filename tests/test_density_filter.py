"""
Tests for the neighbor graph and the density based point filter
"""

import numpy as np
import pytest

from ViewSelection.core import homogenize
from ViewSelection.filtering import NeighborGraph, DensityEstimator, density_weight


def test_boundary_edge_has_zero_weight():
    graph = NeighborGraph.build(np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]]), radius=1.0)

    assert graph.num_edges == 1
    neighbors, weights = graph.neighbors_of(1)
    assert list(neighbors) == [0]
    assert weights[0] == 0.0
    assert density_weight(1.0, 1.0) == 0.0
    assert density_weight(0.0, 1.0) == 1.0


def test_graph_stores_lower_indexed_neighbors_only():
    rng = np.random.default_rng(0)
    points = rng.uniform(-1, 1, size=(100, 3))
    graph = NeighborGraph.build(points, radius=0.4)

    assert graph.num_points == 100
    for i in range(graph.num_points):
        neighbors, weights = graph.neighbors_of(i)
        assert np.all(neighbors < i)
        assert np.all((weights >= 0) & (weights <= 1))
        for j, w in zip(neighbors, weights):
            distance = np.linalg.norm(points[i] - points[j])
            assert distance <= 0.4
            assert w == pytest.approx(1 - distance / 0.4)


def test_graph_of_empty_cloud():
    graph = NeighborGraph.build(np.zeros((0, 3)), radius=1.0)
    assert graph.num_points == 0
    assert graph.num_edges == 0


def test_edge_contributes_to_both_endpoints():
    # chain 0 - 1 - 2; the edges are stored on points 1 and 2 only
    points = np.array([[0.0, 0, 0], [0.5, 0, 0], [1.0, 0, 0]])
    graph = NeighborGraph.build(points, radius=1.0)
    assert len(graph.neighbors_of(0)[0]) == 0

    estimator = DensityEstimator(max_iterations=1)
    density, score, iterations, _ = estimator.estimate(graph)

    assert iterations == 1
    assert score[0] > 0
    assert score[0] == pytest.approx(score[2])
    assert score[1] == pytest.approx(2 * score[0])
    # normalized so that the densities average to one
    assert score.sum() == pytest.approx(3.0)


def test_coincident_cluster_is_reduced_to_a_representative():
    points = homogenize(np.zeros((10, 3)))
    normals = np.tile([0.0, 0.0, 1.0], (10, 1))

    filtered_points, filtered_normals = DensityEstimator().filter_points(points, normals, radius=0.5)

    assert len(filtered_points) == 1
    assert len(filtered_normals) == 1


def test_tight_cluster_is_thinned():
    rng = np.random.default_rng(1)
    cluster = rng.normal(scale=0.01, size=(20, 3))
    points = homogenize(cluster)
    normals = np.tile([0.0, 0.0, 1.0], (20, 1))

    filtered_points, _ = DensityEstimator().filter_points(points, normals, radius=1.0)

    assert 1 <= len(filtered_points) <= 2


def test_isolated_points_are_kept():
    points = homogenize(np.array([[0.0, 0, 0], [10.0, 0, 0], [0, 10.0, 0]]))
    normals = np.eye(3)

    filtered_points, filtered_normals = DensityEstimator().filter_points(points, normals, radius=1.0)

    np.testing.assert_array_equal(filtered_points, points)
    np.testing.assert_array_equal(filtered_normals, normals)


def test_filter_keeps_order_and_parallel_rows():
    rng = np.random.default_rng(2)
    points = homogenize(rng.uniform(-1, 1, size=(300, 3)))
    # tag every row through its normal to follow it through the filter
    normals = np.zeros((300, 3))
    normals[:, 0] = np.arange(300)

    estimator = DensityEstimator()
    filtered_points, filtered_normals = estimator.filter_points(points, normals, radius=0.3)

    assert len(filtered_points) <= len(points)
    assert len(filtered_points) == len(filtered_normals)
    ids = filtered_normals[:, 0].astype(int)
    assert np.all(np.diff(ids) > 0)
    np.testing.assert_array_equal(filtered_points, points[ids])

    stats = estimator.last_statistics
    assert stats.input_count == 300
    assert stats.kept_count == len(filtered_points)
    assert 1 <= stats.iterations <= 200


def test_homogeneous_points_are_dehomogenized():
    # the same two points, once with w = 1 and once scaled by w = 4
    near = np.array([[0.0, 0, 0, 1], [0.1, 0, 0, 1]])
    scaled = near * 4.0
    normals = np.ones((2, 3))

    a, _ = DensityEstimator().filter_points(near, normals, radius=1.0)
    b, _ = DensityEstimator().filter_points(scaled, normals, radius=1.0)

    assert len(a) == len(b) == 1


def test_empty_cloud_is_valid():
    points = np.zeros((0, 4))
    normals = np.zeros((0, 3))

    filtered_points, filtered_normals = DensityEstimator().filter_points(points, normals, radius=1.0)

    assert filtered_points.shape == (0, 4)
    assert filtered_normals.shape == (0, 3)


def test_mismatched_lengths_rejected():
    with pytest.raises(ValueError):
        DensityEstimator().filter_points(np.zeros((3, 4)), np.zeros((2, 3)), radius=1.0)
