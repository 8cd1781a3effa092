"""
Camera Selection
================

Chooses the camera bundles (1 x main, n x side) for one refinement iteration.

Random points are sampled over the mesh surface with probability
proportional to area. For each point a virtual viewer is placed on the
surface, the cameras observing the point are determined against a rendered
depth buffer, and a (main, side) pair is voted for. The number of votes a
pair needs is scaled by a target sampling resolution so that the expected
acceptance rate follows the desired image-space sampling density.
"""

import math
from typing import Dict, Sequence

import numpy as np

from ..logger import get_logger
from ..config import HeuristicConfig
from ..core.structures import Mesh
from ..core.geometry import FOCAL, FAR, face_areas, face_normal, sample_point_in_face, viewer_camera
from ..visibility.renderer import DepthRenderer
from ..visibility.camera_filter import filter_cameras
from .bundles import BundleTable
from .pair_sampler import PairVoteTable, choose_main, choose_side, first_exceeding

SHOT_COUNT = 200


class CameraSelector:
    """
    Repeated random surface queries building a bundle table.
    """

    def __init__(self, config: HeuristicConfig,
                 shot_count: int = SHOT_COUNT,
                 focal: float = FOCAL,
                 far: float = FAR):
        """
        Initialize camera selector.

        Args:
            config: Heuristic configuration (render size, camera threshold)
            shot_count: Number of sampled surface points per run
            focal: Focal length of the virtual viewers
            far: Far plane of the virtual viewers; should cover the scene
        """
        self.config = config
        self.shot_count = shot_count
        self.focal = focal
        self.far = far
        self.bundles = BundleTable()
        self.stats: Dict[str, int] = {}
        self.logger = get_logger("Selection")

    def sampling_resolution(self, camera_count: int, total_area: float) -> float:
        """Target sampling density, in pixels per scene-space area"""
        return (math.sqrt(camera_count) * self.config.width * self.config.height
                / (total_area * self.config.camera_threshold))

    def choose_cameras(self, mesh: Mesh, cameras: Sequence[np.ndarray],
                       renderer: DepthRenderer, rng: np.random.Generator) -> int:
        """
        Choose all camera bundles for an update iteration.

        Args:
            mesh: Current scene mesh
            cameras: 4x4 camera matrices, indexed by frame number
            renderer: Depth renderer used for occlusion tests
            rng: Random stream shared by all draws of the run

        Returns:
            Number of accepted camera pairs; the bundles are left in self.bundles
        """
        self.bundles = BundleTable()
        self.stats = {'shots': 0, 'visible': 0, 'accepted': 0}

        areas = face_areas(mesh)
        area_sum = np.concatenate([[0.0], np.cumsum(areas)])
        total_area = area_sum[-1]
        if mesh.num_faces == 0 or not total_area > 0:
            self.logger.warning(f"Mesh has no surface to sample ({mesh}), no cameras chosen")
            return 0
        if len(cameras) == 0:
            self.logger.warning("No cameras given, no cameras chosen")
            return 0

        resolution = self.sampling_resolution(len(cameras), total_area)
        self.logger.info(
            f"Choosing cameras: {len(cameras)} cameras, surface area {total_area:.4g}, "
            f"sampling resolution {resolution:.4g}"
        )

        renderer.load_mesh(mesh)
        # table of pair votes, owned by this run
        votes = PairVoteTable()
        boost = self.config.camera_threshold
        camera_count = 0

        for shot in range(self.shot_count):
            self.stats['shots'] += 1

            # select a face by weighted randomness
            face_idx = first_exceeding(area_sum, rng.random() * total_area)
            normal = face_normal(mesh, face_idx)
            if normal is None:
                continue
            center = sample_point_in_face(mesh, face_idx, rng)

            # render a view of the scene from that point
            viewer = viewer_camera(center, normal, far=self.far, focal=self.focal)
            depth = renderer.depth(viewer)

            # filter out cameras that do not display this point correctly
            filtered = filter_cameras(viewer, depth, cameras, focal=self.focal)
            if len(filtered) < 2:
                continue
            self.stats['visible'] += 1

            main, main_weight_sum = choose_main(votes, filtered, boost, rng)
            if main is None:
                continue
            threshold = self.shot_count * main_weight_sum / resolution
            side = choose_side(votes, main, threshold, boost / 10, filtered, rng, focal=self.focal)
            if side is None:
                continue

            camera_count += 1
            self.bundles.add(main.index, side.index)
            self.logger.debug(f"  Shot {shot}: accepted pair ({main.index}, {side.index})")

        self.bundles.sort()
        self.stats['accepted'] = camera_count
        self.logger.info(
            f"✓ {camera_count} camera pairs accepted from {self.stats['visible']}/{self.shot_count} "
            f"usable shots, {len(self.bundles)} main cameras"
        )
        return camera_count
