"""
Refinement Heuristic
====================

Drives the outer refinement loop of the reconstruction: decides whether
another pass runs, cleans the point cloud, produces the mesh of the current
iteration and chooses the camera bundles used for stereo refinement.

Typical use by the reconstruction driver:
    >>> heuristic = RefinementHeuristic(HeuristicConfig(iteration_count=3, seed=0))
    >>> while heuristic.not_happy(points):
    ...     if heuristic.iteration > 1:
    ...         points, normals = heuristic.filter_points(points, normals)
    ...     mesh = heuristic.tessellate(points, normals)
    ...     heuristic.choose_cameras(mesh, cameras)
    ...     main = heuristic.begin_main()
    ...     while main != SENTINEL:
    ...         side = heuristic.begin_side(main)
    ...         while side != SENTINEL:
    ...             ...  # refine points with the (main, side) pair
    ...             side = heuristic.next_side(main)
    ...         main = heuristic.next_main()
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import HeuristicConfig
from .logger import configure_root_logger
from .core.structures import Mesh
from .filtering import DensityEstimator
from .mesh import SurfaceReconstructor
from .selection import BundleIterator, BundleTable, CameraSelector, SENTINEL
from .visibility import DepthRenderer, RaycastingDepthRenderer


class RefinementHeuristic:
    """
    All the heuristic decisions of the refinement loop.
    """

    sentinel = SENTINEL

    def __init__(self,
                 config: Optional[HeuristicConfig] = None,
                 reconstructor: Optional[SurfaceReconstructor] = None,
                 renderer: Optional[DepthRenderer] = None):
        """
        Initialize the heuristic.

        Args:
            config: Configuration object. If None, uses defaults.
            reconstructor: Surface reconstruction collaborator
            renderer: Depth renderer used by the camera selection
        """
        self.config = config or HeuristicConfig()
        self.logger = configure_root_logger(self.config.verbosity, self.config.log_file)

        self.reconstructor = reconstructor or SurfaceReconstructor(
            min_depth=self.config.poisson_min_depth,
            max_depth=self.config.poisson_max_depth
        )
        self.renderer = renderer or RaycastingDepthRenderer(self.config.width, self.config.height)
        self.rng = np.random.default_rng(self.config.seed)

        self.iteration = 0
        self.alpha_vals: List[float] = []
        self.estimator = DensityEstimator()
        self.selector = CameraSelector(self.config)
        self._cursor = BundleIterator(self.selector.bundles)

    def not_happy(self, points: np.ndarray) -> bool:
        """
        Check if the scene needs another refinement pass.

        Simply limits the number of iterations.
        """
        self.iteration += 1
        happy = self.iteration > self.config.iteration_count
        if not happy:
            self.logger.info(f"--- Refinement iteration {self.iteration}/{self.config.iteration_count} ---")
        return not happy

    def filter_points(self, points: np.ndarray, normals: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Filter outliers and redundant points from the point cloud.

        The neighborhood radius is a quarter of the latest reconstruction parameter.
        """
        if not self.alpha_vals:
            raise RuntimeError("No reconstruction parameter yet, call tessellate() first")
        radius = self.alpha_vals[-1] / 4.0
        return self.estimator.filter_points(points, normals, radius)

    def tessellate(self, points: np.ndarray, normals: np.ndarray) -> Mesh:
        """
        Polygonize the point cloud using the method of the current iteration.

        The first iteration reads the fixed input mesh or computes an alpha
        shape; later iterations compute a Poisson surface and halve the
        reconstruction parameter.
        """
        if self.iteration <= 1:
            if self.config.in_mesh_file:
                result = self.reconstructor.read_mesh(self.config.in_mesh_file)
                # TODO: estimate an alpha value from the mesh geometry
                self.alpha_vals.append(1.0)
                return result
            result, alpha = self.reconstructor.alpha_shape(points)
            self.alpha_vals.append(alpha)
            return result

        result = self.reconstructor.poisson_surface(points, normals, self.alpha_vals[-1])
        self.alpha_vals.append(self.alpha_vals[-1] / 2)
        return result

    def choose_cameras(self, mesh: Mesh, cameras: Sequence[np.ndarray]) -> int:
        """
        Choose all camera bundles (1 x main, n x side) for an update iteration.

        Returns:
            Number of accepted camera pairs
        """
        try:
            return self.selector.choose_cameras(mesh, cameras, self.renderer, self.rng)
        finally:
            # the cursor always walks the table of the latest run
            self._cursor = BundleIterator(self.selector.bundles)

    @property
    def bundles(self) -> BundleTable:
        return self.selector.bundles

    def begin_main(self) -> int:
        return self._cursor.begin_main()

    def next_main(self) -> int:
        return self._cursor.next_main()

    def begin_side(self, imain: int) -> int:
        return self._cursor.begin_side(imain)

    def next_side(self, imain: int) -> int:
        return self._cursor.next_side(imain)

    def render_size(self) -> Tuple[int, int]:
        """Frame render size (width, height) used for reprojection"""
        return self.config.width, self.config.height
