"""
Geometry Helpers
================

Homogeneous coordinate helpers, camera centres, triangle areas and the
synthesis of a virtual viewer camera sitting on a mesh face.

Cameras are 4x4 projective transforms (world -> clip). Dividing the result by
its 4th coordinate yields normalized device coordinates in [-1, 1]^3 for
points inside the view frustum.
"""

from typing import Optional

import numpy as np

from .structures import Mesh

# Focal length of the virtual viewer placed on a face
FOCAL = 0.5
# Viewer clipping planes
NEAR = 0.001
FAR = 10.0


def dehomogenize(points: np.ndarray) -> np.ndarray:
    """
    Convert homogeneous rows (N, 4) to Cartesian rows (N, 3).

    Rows that are already Cartesian are returned as a float copy.
    """
    points = np.asarray(points, dtype=np.float64)
    if points.ndim != 2:
        raise ValueError(f"Expected a 2D array of points, got shape {points.shape}")
    if points.shape[1] == 3:
        return points.copy()
    if points.shape[1] != 4:
        raise ValueError(f"Expected (N, 3) or (N, 4) points, got {points.shape}")
    return points[:, :3] / points[:, 3:4]


def homogenize(points: np.ndarray) -> np.ndarray:
    """Append a unit 4th coordinate to Cartesian rows (N, 3)"""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    return np.hstack([points, np.ones((len(points), 1))])


def extract_camera_center(camera: np.ndarray) -> np.ndarray:
    """
    Optical centre of a 4x4 projective camera.

    The centre is the point projected to x = y = w = 0, i.e. the null vector
    of rows 0, 1 and 3 of the matrix.

    Returns:
        Homogeneous centre (4,), scaled to w = 1 when finite
    """
    camera = np.asarray(camera, dtype=np.float64)
    _, _, vt = np.linalg.svd(camera[[0, 1, 3], :])
    center = vt[-1]
    if abs(center[3]) > 1e-12:
        center = center / center[3]
    return center


def projection_matrix(focal: float = FOCAL, near: float = NEAR, far: float = FAR) -> np.ndarray:
    """OpenGL style perspective matrix with equal focal lengths and no principal offset"""
    return np.array([
        [focal, 0.0, 0.0, 0.0],
        [0.0, focal, 0.0, 0.0],
        [0.0, 0.0, (near + far) / (far - near), 2.0 * near * far / (near - far)],
        [0.0, 0.0, 1.0, 0.0],
    ])


def face_vertices(mesh: Mesh, face_idx: int):
    """Cartesian corners (a, b, c) of a mesh face"""
    idx = mesh.faces[face_idx]
    corners = mesh.vertices[idx, :3] / mesh.vertices[idx, 3:4]
    return corners[0], corners[1], corners[2]


def face_areas(mesh: Mesh) -> np.ndarray:
    """Area of every face of the mesh (M,)"""
    if mesh.num_faces == 0:
        return np.zeros(0)
    corners = dehomogenize(mesh.vertices)[mesh.faces]
    e = corners[:, 1] - corners[:, 0]
    f = corners[:, 2] - corners[:, 1]
    return np.linalg.norm(np.cross(e, f), axis=1) / 2.0


def face_normal(mesh: Mesh, face_idx: int) -> Optional[np.ndarray]:
    """
    Unit normal (b - a) x (c - b) of a face, following its winding.

    Returns None for degenerate faces.
    """
    a, b, c = face_vertices(mesh, face_idx)
    normal = np.cross(b - a, c - b)
    length = np.linalg.norm(normal)
    if length <= 0:
        return None
    return normal / length


def sample_point_in_face(mesh: Mesh, face_idx: int, rng: np.random.Generator) -> np.ndarray:
    """
    Uniformly random point inside a triangle (barycentric sampling).

    Samples with u1 + u2 > 1 are reflected back into the triangle.
    """
    a, b, c = face_vertices(mesh, face_idx)
    u1, u2 = rng.random(), rng.random()
    if u1 + u2 > 1:
        u1 = 1 - u1
        u2 = 1 - u2
    return a * u1 + b * u2 + c * (1 - u1 - u2)


def viewer_rotation(normal: np.ndarray) -> np.ndarray:
    """
    Rotation whose third row (the optical axis) is the given unit normal.

    Vertical normals need no rotation other than a possible flip.
    """
    x, y, z = normal
    xy = np.sqrt(x * x + y * y)
    if xy > 0:
        return np.array([
            [z * x / xy, z * y / xy, -xy],
            [-y / xy, x / xy, 0.0],
            [x, y, z],
        ])
    s = 1.0 if z > 0 else -1.0
    return np.diag([1.0, s, s])


def viewer_camera(center: np.ndarray, normal: np.ndarray,
                  far: float = FAR, focal: float = FOCAL, near: float = NEAR) -> np.ndarray:
    """
    Virtual camera centred on a surface point, looking along the face normal.

    Args:
        center: Cartesian camera centre (3,)
        normal: Unit face normal (3,)
        far: Far clipping plane
        focal: Focal length
        near: Near clipping plane

    Returns:
        4x4 world -> clip matrix
    """
    rotation = viewer_rotation(np.asarray(normal, dtype=np.float64))
    rt = np.eye(4)
    rt[:3, :3] = rotation
    rt[:3, 3] = -rotation @ np.asarray(center, dtype=np.float64)
    return projection_matrix(focal, near, far) @ rt


def look_at_camera(center: np.ndarray, target: np.ndarray,
                   focal: float = 1.0, near: float = 0.01, far: float = 100.0) -> np.ndarray:
    """
    Camera at `center` whose optical axis points at `target`.

    Convenient for synthetic scenes; real sequences come with calibrated matrices.
    """
    center = np.asarray(center, dtype=np.float64)
    axis = np.asarray(target, dtype=np.float64) - center
    norm = np.linalg.norm(axis)
    if norm <= 0:
        raise ValueError("Camera centre and target coincide")
    return viewer_camera(center, axis / norm, far=far, focal=focal, near=near)
