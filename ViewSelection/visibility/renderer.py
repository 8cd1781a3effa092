"""
Depth Rendering
===============

Depth buffers of the current mesh as seen by a virtual viewer camera.

Buffers store normalized device depth (in [-1, 1]) per pixel; pixels that see
no geometry hold BACKGROUND_DEPTH. Row r and column c of a W x H buffer cover
the normalized coordinates y = (r + 0.5) * 2 / H - 1 and x = (c + 0.5) * 2 / W - 1.
"""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
import open3d as o3d

from ..logger import get_logger
from ..core.structures import Mesh
from ..core.geometry import dehomogenize

BACKGROUND_DEPTH = np.inf


class DepthRenderer(ABC):
    """
    Abstract depth renderer.

    Rendering is synchronous; failures propagate to the caller.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height

    @abstractmethod
    def load_mesh(self, mesh: Mesh):
        """Set the geometry rendered by subsequent depth() calls"""
        pass

    @abstractmethod
    def depth(self, viewer: np.ndarray) -> np.ndarray:
        """
        Render a depth buffer.

        Args:
            viewer: 4x4 world -> clip camera

        Returns:
            (height, width) array of normalized depths
        """
        pass

    def pixel_grid(self):
        """Normalized (x, y) coordinates of the pixel centres, each (height, width)"""
        xs = (np.arange(self.width) + 0.5) * 2.0 / self.width - 1.0
        ys = (np.arange(self.height) + 0.5) * 2.0 / self.height - 1.0
        return np.meshgrid(xs, ys)


class RaycastingDepthRenderer(DepthRenderer):
    """
    Depth renderer built on Open3D's raycasting scene.

    One ray per pixel is cast from the near to the far clipping plane of the
    viewer; hits are projected back through the viewer to obtain their
    normalized depth.
    """

    def __init__(self, width: int, height: int):
        super().__init__(width, height)
        self.scene: Optional[o3d.t.geometry.RaycastingScene] = None
        self.logger = get_logger("Render")

    def load_mesh(self, mesh: Mesh):
        self.scene = o3d.t.geometry.RaycastingScene()
        if mesh.num_faces == 0:
            self.logger.warning("Loaded an empty mesh, all buffers will be background")
            return

        vertices = o3d.core.Tensor(dehomogenize(mesh.vertices).astype(np.float32))
        triangles = o3d.core.Tensor(mesh.faces.astype(np.uint32))
        self.scene.add_triangles(vertices, triangles)
        self.logger.debug(f"Raycasting scene ready: {mesh}")

    def depth(self, viewer: np.ndarray) -> np.ndarray:
        if self.scene is None:
            raise RuntimeError("No mesh loaded, call load_mesh() first")

        viewer = np.asarray(viewer, dtype=np.float64)
        x, y = self.pixel_grid()
        x, y = x.ravel(), y.ravel()
        count = len(x)

        inverse = np.linalg.inv(viewer)
        near = np.stack([x, y, -np.ones(count), np.ones(count)], axis=1) @ inverse.T
        far = np.stack([x, y, np.ones(count), np.ones(count)], axis=1) @ inverse.T
        near = near[:, :3] / near[:, 3:4]
        far = far[:, :3] / far[:, 3:4]
        directions = far - near

        rays = o3d.core.Tensor(np.hstack([near, directions]).astype(np.float32))
        t_hit = self.scene.cast_rays(rays)['t_hit'].numpy().astype(np.float64)

        # hits beyond the far plane are background as well
        hit = np.isfinite(t_hit) & (t_hit <= 1.0)
        depth = np.full(count, BACKGROUND_DEPTH)
        if np.any(hit):
            points = near[hit] + t_hit[hit, None] * directions[hit]
            clip = np.hstack([points, np.ones((len(points), 1))]) @ viewer.T
            depth[hit] = clip[:, 2] / clip[:, 3]

        return depth.reshape(self.height, self.width)
