"""
Camera Visibility Filter
========================

Selects the cameras that actually observe a sampled surface point.

The point is represented by a virtual viewer camera centred on it. A camera
passes when its centre lies inside the viewer's depth range and image, nothing
in the rendered depth buffer blocks the line of sight, and the point lies in
front of the camera and inside its image.
"""

import math
from typing import List, Sequence

import numpy as np

from ..core.structures import CameraLabel, LabelledCamera
from ..core.geometry import FOCAL, extract_camera_center
from .renderer import BACKGROUND_DEPTH


def depth_pixel(x: float, y: float, rows: int, cols: int):
    """Buffer (row, col) of normalized image coordinates"""
    return int(math.floor((y + 1) * rows / 2)), int(math.floor((x + 1) * cols / 2))


def filter_cameras(viewer: np.ndarray, depth: np.ndarray,
                   cameras: Sequence[np.ndarray], focal: float = FOCAL) -> List[LabelledCamera]:
    """
    Filter out cameras that do not display the given point on the scene surface.

    Args:
        viewer: 4x4 virtual camera centred on the surface point
        depth: Depth buffer rendered from the viewer
        cameras: Candidate 4x4 cameras, indexed by their position
        focal: Focal length of the viewer

    Returns:
        Cameras that passed all visibility tests, with their labels
    """
    viewer = np.asarray(viewer, dtype=np.float64)
    rows, cols = depth.shape
    viewer_center = extract_camera_center(viewer)

    filtered = []
    for index, camera in enumerate(cameras):
        camera = np.asarray(camera, dtype=np.float64)

        # position of the camera centre projected by the viewer
        cfv = viewer @ extract_camera_center(camera)
        if cfv[3] == 0:
            continue
        cfv = cfv / cfv[3]

        # the camera must be inside the depth range of the viewer
        if cfv[2] > 1 or cfv[2] < -1:
            continue

        # check that there is no obstacle between the point and the camera
        row, col = depth_pixel(cfv[0], cfv[1], rows, cols)
        if row < 0 or row >= rows or col < 0 or col >= cols:
            continue
        obstacle = depth[row, col]
        if obstacle != BACKGROUND_DEPTH and obstacle <= cfv[2]:
            continue

        # check that the point is in front of this camera
        vfc = camera @ viewer_center
        distance = vfc[3] / viewer_center[3]
        if distance <= 0:
            continue

        # check that the point is projected into the image domain of this camera
        vfc = vfc / vfc[3]
        if vfc[0] < -1 or vfc[0] > 1 or vfc[1] < -1 or vfc[1] > 1:
            continue

        label = CameraLabel(
            index=index,
            cos_from_viewer=math.sqrt(1.0 / (1.0 + (cfv[0] ** 2 + cfv[1] ** 2) / focal ** 2)),
            distance=float(distance),
            view_x=float(cfv[0]),
            view_y=float(cfv[1])
        )
        filtered.append(LabelledCamera(label, camera))

    return filtered
