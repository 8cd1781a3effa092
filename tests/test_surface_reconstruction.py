"""
Tests for the surface reconstruction collaborators
"""

import numpy as np
import pytest

from ViewSelection.core import Mesh, homogenize
from ViewSelection.mesh import SurfaceReconstructor, filter_finest, bounding_box_size


def sphere_cloud(count=800, radius=1.0, seed=0):
    rng = np.random.default_rng(seed)
    directions = rng.normal(size=(count, 3))
    directions /= np.linalg.norm(directions, axis=1, keepdims=True)
    return homogenize(directions * radius), directions


def test_bounding_box_size():
    points = homogenize(np.array([[0.0, 0.0, 0.0], [1.0, 3.0, -2.0]]))
    assert bounding_box_size(points) == pytest.approx(3.0)
    assert bounding_box_size(np.zeros((0, 4))) == 0.0


def test_filter_finest_drops_long_faces():
    vertices = [[0, 0, 0], [1, 0, 0], [0, 1, 0], [10, 0, 0], [10, 1, 0]]
    faces = [[0, 1, 2], [1, 3, 4]]
    mesh = Mesh.from_cartesian(vertices, faces)

    filtered = filter_finest(mesh, 1.5)

    assert filtered.num_faces == 1
    assert filtered.num_vertices == 3
    np.testing.assert_array_equal(filtered.faces, [[0, 1, 2]])


def test_filter_finest_keeps_everything_below_size(cube_mesh):
    filtered = filter_finest(cube_mesh, 10.0)
    assert filtered.num_faces == cube_mesh.num_faces
    assert filtered.num_vertices == cube_mesh.num_vertices


@pytest.mark.parametrize("bbox, refinement, expected", [
    (2.0, 0.25, 6),
    (2.0, 0.2, 7),
    (1.0, 1.0, 4),
    (1000.0, 0.001, 10),
    (0.0, 0.5, 4),
])
def test_poisson_depth_is_clamped(bbox, refinement, expected):
    assert SurfaceReconstructor(min_depth=4, max_depth=10).poisson_depth(bbox, refinement) == expected


def test_read_mesh(tmp_path):
    path = tmp_path / "triangle.obj"
    path.write_text("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n")

    mesh = SurfaceReconstructor().read_mesh(path)

    assert mesh.num_vertices == 3
    assert mesh.num_faces == 1
    np.testing.assert_allclose(mesh.vertices[:, 3], 1.0)


def test_read_missing_mesh(tmp_path):
    with pytest.raises(FileNotFoundError):
        SurfaceReconstructor().read_mesh(tmp_path / "missing.ply")


def test_alpha_shape_of_sphere():
    points, _ = sphere_cloud()
    mesh, alpha = SurfaceReconstructor().alpha_shape(points)

    assert alpha > 0
    assert mesh.num_faces > 0
    assert mesh.vertices.shape[1] == 4


def test_alpha_shape_needs_points():
    with pytest.raises(ValueError):
        SurfaceReconstructor().alpha_shape(homogenize(np.eye(3)))


def test_poisson_surface_of_sphere():
    points, normals = sphere_cloud(count=2000)
    mesh = SurfaceReconstructor(min_depth=4, max_depth=6).poisson_surface(points, normals, 0.25)

    assert mesh.num_faces > 0
    radii = np.linalg.norm(mesh.vertices[:, :3], axis=1)
    assert np.median(radii) == pytest.approx(1.0, abs=0.15)


def test_poisson_surface_length_mismatch():
    points, normals = sphere_cloud(count=50)
    with pytest.raises(ValueError):
        SurfaceReconstructor().poisson_surface(points, normals[:10], 0.5)
