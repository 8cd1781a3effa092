"""
Surface Reconstruction
======================

Surface extraction from filtered point clouds using Open3D:
- Alpha shapes for the first, coarse mesh
- Poisson reconstruction for later refinement iterations
- Reading a fixed mesh from disk (trimesh)
"""

import math
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
import open3d as o3d
import trimesh

from ..logger import get_logger
from ..core.structures import Mesh
from ..core.geometry import dehomogenize

# faces with an edge longer than this many Poisson grid cells are dropped
FINEST_FACE_FACTOR = 1.8


def bounding_box_size(points: np.ndarray) -> float:
    """Largest dimension of the bounding box of (N, 3) or homogeneous (N, 4) points"""
    points = dehomogenize(points)
    if len(points) == 0:
        return 0.0
    return float(np.max(points.max(axis=0) - points.min(axis=0)))


def filter_finest(mesh: Mesh, size: float) -> Mesh:
    """
    Drop all faces with an edge longer than `size`, and the vertices no
    remaining face references.

    Args:
        mesh: Input mesh
        size: Maximum edge length

    Returns:
        Filtered mesh with re-indexed faces
    """
    if mesh.num_faces == 0:
        return Mesh(mesh.vertices[:0], mesh.faces)

    corners = dehomogenize(mesh.vertices)[mesh.faces]
    edges = np.stack([
        np.linalg.norm(corners[:, 0] - corners[:, 1], axis=1),
        np.linalg.norm(corners[:, 1] - corners[:, 2], axis=1),
        np.linalg.norm(corners[:, 2] - corners[:, 0], axis=1),
    ], axis=1)
    good_faces = np.all(edges <= size, axis=1)

    good_vertices = np.zeros(mesh.num_vertices, dtype=bool)
    good_vertices[mesh.faces[good_faces].ravel()] = True

    reindex = np.full(mesh.num_vertices, -1, dtype=np.int64)
    reindex[good_vertices] = np.arange(np.count_nonzero(good_vertices))
    faces = reindex[mesh.faces[good_faces]]

    return Mesh(mesh.vertices[good_vertices], faces)


def from_open3d(mesh: o3d.geometry.TriangleMesh) -> Mesh:
    return Mesh.from_cartesian(np.asarray(mesh.vertices), np.asarray(mesh.triangles))


class SurfaceReconstructor:
    """
    Surface reconstruction collaborator of the refinement heuristic.
    """

    def __init__(self,
                 min_depth: int = 4,
                 max_depth: int = 10,
                 normal_neighbors: int = 20,
                 alpha_factor: float = 3.0):
        """
        Initialize surface reconstructor.

        Args:
            min_depth: Smallest Poisson octree depth
            max_depth: Largest Poisson octree depth
            normal_neighbors: Neighbors used for normal estimation
            alpha_factor: Alpha shape parameter in units of the mean point spacing
        """
        self.min_depth = min_depth
        self.max_depth = max_depth
        self.normal_neighbors = normal_neighbors
        self.alpha_factor = alpha_factor
        self.logger = get_logger("Mesh")

    def _point_cloud(self, points: np.ndarray) -> o3d.geometry.PointCloud:
        pcd = o3d.geometry.PointCloud()
        pcd.points = o3d.utility.Vector3dVector(dehomogenize(points))
        return pcd

    def estimated_normals(self, points: np.ndarray) -> np.ndarray:
        """Unit normals (N, 3) estimated from the nearest neighbors of every point"""
        pcd = self._point_cloud(points)
        pcd.estimate_normals(
            search_param=o3d.geometry.KDTreeSearchParamKNN(knn=self.normal_neighbors)
        )
        return np.asarray(pcd.normals)

    def alpha_shape(self, points: np.ndarray, alpha: Optional[float] = None) -> Tuple[Mesh, float]:
        """
        Alpha shape of the point cloud.

        Args:
            points: Homogeneous points (N, 4)
            alpha: Alpha value; estimated from the point spacing if None

        Returns:
            mesh: Alpha shape mesh
            alpha: Alpha value used
        """
        pcd = self._point_cloud(points)
        if len(pcd.points) < 4:
            raise ValueError(f"Alpha shape needs at least 4 points, got {len(pcd.points)}")

        if alpha is None:
            distances = np.asarray(pcd.compute_nearest_neighbor_distance())
            alpha = float(np.mean(distances)) * self.alpha_factor

        self.logger.info(f"Creating alpha shape (alpha={alpha:.4g})...")
        mesh = o3d.geometry.TriangleMesh.create_from_point_cloud_alpha_shape(pcd, alpha)
        result = from_open3d(mesh)
        self.logger.info(f"✓ Alpha shape mesh: {result.num_vertices} vertices, {result.num_faces} triangles")

        return result, alpha

    def poisson_depth(self, bbox: float, refinement: float) -> int:
        """Octree depth whose grid size bbox / 2^(depth - 3) does not exceed the refinement parameter"""
        if not bbox > 0 or not refinement > 0:
            return self.min_depth
        depth = math.ceil(math.log2(bbox / refinement)) + 3
        return int(min(max(depth, self.min_depth), self.max_depth))

    def poisson_surface(self, points: np.ndarray, normals: np.ndarray, refinement: float) -> Mesh:
        """
        Poisson surface of the point cloud.

        Normals are re-estimated from the point neighborhoods, oriented like
        the supplied normals and scaled by their length (the confidence).

        Args:
            points: Homogeneous points (N, 4)
            normals: Normal/confidence vectors (N, k), k >= 3
            refinement: Target grid size of the reconstruction

        Returns:
            Reconstructed mesh without its coarsest faces
        """
        points = np.asarray(points)
        normals = np.asarray(normals, dtype=np.float64)
        if len(points) != len(normals):
            raise ValueError(f"Points and normals differ in length: {len(points)} != {len(normals)}")

        estimated = self.estimated_normals(points)
        flip = np.sum(estimated * normals[:, :3], axis=1) < 0
        estimated[flip] *= -1
        confidence = np.linalg.norm(normals, axis=1)

        pcd = self._point_cloud(points)
        pcd.normals = o3d.utility.Vector3dVector(estimated * confidence[:, None])

        depth = self.poisson_depth(bounding_box_size(points), refinement)
        self.logger.info(f"Running Poisson reconstruction (depth={depth})...")
        mesh, _ = o3d.geometry.TriangleMesh.create_from_point_cloud_poisson(pcd, depth=depth)
        result = from_open3d(mesh)

        bbox = bounding_box_size(result.vertices)
        grid_size = bbox / (1 << (depth - 3))
        self.logger.debug(f"boundbox {bbox:.4g}, depth {depth}, gridsize {grid_size:.4g}")
        result = filter_finest(result, FINEST_FACE_FACTOR * grid_size)
        self.logger.info(f"✓ Poisson mesh: {result.num_vertices} vertices, {result.num_faces} triangles")

        return result

    def read_mesh(self, path: Union[str, Path]) -> Mesh:
        """Read a triangle mesh (OBJ, PLY, STL, ...) from disk"""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Mesh file not found: {path}")

        loaded = trimesh.load(str(path), force='mesh')
        result = Mesh.from_cartesian(np.asarray(loaded.vertices), np.asarray(loaded.faces))
        self.logger.info(f"✓ Loaded {result} from {path}")
        return result
