"""
Heuristic Configuration
=======================

Read-only settings consumed by the refinement heuristic: the outer iteration
cap, output image size, the camera density threshold factor and the optional
fixed input mesh.
"""

import json
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union


@dataclass
class HeuristicConfig:
    """Configuration for the view selection heuristic"""

    # Outer refinement loop
    iteration_count: int = 3

    # Logging
    verbosity: int = 1
    log_file: Optional[str] = None

    # Output image size (used for the target sampling resolution and rendering)
    width: int = 640
    height: int = 480

    # Camera density threshold factor; also used as the selection boost
    camera_threshold: float = 1.0

    # Fixed mesh used instead of the alpha shape on the first iteration
    in_mesh_file: Optional[str] = None

    # Seed of the random stream shared by all weighted draws
    seed: Optional[int] = None

    # Poisson octree depth limits for later iterations
    poisson_min_depth: int = 4
    poisson_max_depth: int = 10

    def __post_init__(self):
        if self.iteration_count < 0:
            raise ValueError(f"iteration_count must be >= 0, got {self.iteration_count}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Render size must be positive, got {self.width}x{self.height}")
        if self.camera_threshold <= 0:
            raise ValueError(f"camera_threshold must be positive, got {self.camera_threshold}")
        if not 1 <= self.poisson_min_depth <= self.poisson_max_depth:
            raise ValueError(
                f"Invalid Poisson depth range [{self.poisson_min_depth}, {self.poisson_max_depth}]"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HeuristicConfig':
        """
        Build a configuration from a dictionary, ignoring unknown keys.

        Args:
            data: Mapping of field names to values

        Returns:
            HeuristicConfig instance
        """
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> 'HeuristicConfig':
        """Load a configuration from a JSON file"""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path, 'r') as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
