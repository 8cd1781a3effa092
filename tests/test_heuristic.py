"""
Tests for the refinement heuristic driving the outer loop
"""

import logging

import numpy as np
import pytest

from ViewSelection import RefinementHeuristic, HeuristicConfig, SENTINEL
from ViewSelection.logger import ROOT_LOGGER
from ViewSelection.core import Mesh

from conftest import BackgroundRenderer, CUBE_VERTICES, CUBE_FACES


class RecordingReconstructor:
    """Surface reconstructor returning the cube and recording its calls"""

    def __init__(self, alpha=0.8):
        self.alpha = alpha
        self.poisson_calls = []
        self.read_calls = []

    def mesh(self):
        return Mesh.from_cartesian(CUBE_VERTICES, CUBE_FACES)

    def alpha_shape(self, points, alpha=None):
        return self.mesh(), self.alpha

    def poisson_surface(self, points, normals, refinement):
        self.poisson_calls.append(refinement)
        return self.mesh()

    def read_mesh(self, path):
        self.read_calls.append(path)
        return self.mesh()


class RecordingEstimator:
    def __init__(self):
        self.radii = []

    def filter_points(self, points, normals, radius):
        self.radii.append(radius)
        return points, normals


@pytest.fixture
def cloud():
    points = np.hstack([CUBE_VERTICES, np.ones((8, 1))])
    return points, CUBE_VERTICES / np.sqrt(3)


def make_heuristic(config, reconstructor=None):
    return RefinementHeuristic(config, reconstructor or RecordingReconstructor(), BackgroundRenderer())


def test_not_happy_limits_iterations(cloud):
    heuristic = make_heuristic(HeuristicConfig(iteration_count=2, verbosity=0))
    points, _ = cloud

    assert heuristic.not_happy(points)
    assert heuristic.not_happy(points)
    assert not heuristic.not_happy(points)
    assert heuristic.iteration == 3


def test_zero_iterations_never_run(cloud):
    heuristic = make_heuristic(HeuristicConfig(iteration_count=0, verbosity=0))
    assert not heuristic.not_happy(cloud[0])


def test_reconstruction_parameter_halves_each_iteration(cloud):
    reconstructor = RecordingReconstructor(alpha=0.8)
    heuristic = make_heuristic(HeuristicConfig(iteration_count=3, verbosity=0), reconstructor)
    points, normals = cloud

    while heuristic.not_happy(points):
        heuristic.tessellate(points, normals)

    assert heuristic.alpha_vals == pytest.approx([0.8, 0.4, 0.2])
    # each Poisson pass uses the parameter of the previous iteration
    assert reconstructor.poisson_calls == pytest.approx([0.8, 0.4])


def test_fixed_input_mesh_replaces_the_alpha_shape(cloud, tmp_path):
    reconstructor = RecordingReconstructor()
    mesh_file = str(tmp_path / "scene.obj")
    heuristic = make_heuristic(HeuristicConfig(in_mesh_file=mesh_file, verbosity=0), reconstructor)
    points, normals = cloud

    heuristic.not_happy(points)
    mesh = heuristic.tessellate(points, normals)

    assert mesh.num_faces == 12
    assert reconstructor.read_calls == [mesh_file]
    assert heuristic.alpha_vals == [1.0]


def test_filter_radius_follows_latest_parameter(cloud):
    heuristic = make_heuristic(HeuristicConfig(verbosity=0), RecordingReconstructor(alpha=0.8))
    heuristic.estimator = RecordingEstimator()
    points, normals = cloud

    with pytest.raises(RuntimeError):
        heuristic.filter_points(points, normals)

    heuristic.not_happy(points)
    heuristic.tessellate(points, normals)
    heuristic.filter_points(points, normals)
    heuristic.not_happy(points)
    heuristic.tessellate(points, normals)
    heuristic.filter_points(points, normals)

    assert heuristic.estimator.radii == pytest.approx([0.2, 0.1])


def test_cursor_walks_the_chosen_bundles(small_config, ring_cameras, cloud):
    heuristic = make_heuristic(small_config)
    points, normals = cloud

    # no bundles before any selection
    assert heuristic.begin_main() == SENTINEL

    heuristic.not_happy(points)
    mesh = heuristic.tessellate(points, normals)
    count = heuristic.choose_cameras(mesh, ring_cameras)

    walked = []
    main = heuristic.begin_main()
    while main != heuristic.sentinel:
        side = heuristic.begin_side(main)
        while side != SENTINEL:
            walked.append((main, side))
            side = heuristic.next_side(main)
        main = heuristic.next_main()

    assert count > 0
    assert walked == list(heuristic.bundles.pairs())
    assert len(walked) == count
    assert heuristic.renderer.loaded is mesh


def test_render_size(small_config):
    assert make_heuristic(small_config).render_size() == (64, 48)


def test_each_heuristic_applies_its_own_verbosity(tmp_path):
    root = logging.getLogger(ROOT_LOGGER)

    make_heuristic(HeuristicConfig(verbosity=0))
    assert root.level == logging.WARNING

    log_file = tmp_path / "logs" / "selection.log"
    make_heuristic(HeuristicConfig(verbosity=2, log_file=str(log_file)))
    assert root.level == logging.DEBUG
    assert any(isinstance(h, logging.FileHandler) for h in root.handlers)
    assert log_file.exists()

    make_heuristic(HeuristicConfig(verbosity=1))
    assert root.level == logging.INFO
    assert not any(isinstance(h, logging.FileHandler) for h in root.handlers)


def test_cursor_follows_a_failed_selection(small_config, ring_cameras, cloud):
    heuristic = make_heuristic(small_config)
    points, normals = cloud
    heuristic.not_happy(points)
    mesh = heuristic.tessellate(points, normals)
    assert heuristic.choose_cameras(mesh, ring_cameras) > 0

    def broken_depth(viewer):
        raise RuntimeError("render failed")

    heuristic.renderer.depth = broken_depth
    with pytest.raises(RuntimeError):
        heuristic.choose_cameras(mesh, ring_cameras)

    # the bundles of the earlier run are gone and the cursor does not walk them
    assert len(heuristic.bundles) == 0
    assert heuristic.begin_main() == SENTINEL
