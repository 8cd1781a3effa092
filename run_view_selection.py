"""
View Selection - Refinement Loop Example
========================================

This script runs the refinement heuristic over a reconstructed point cloud:
1. Load the point cloud (with normals) and the calibrated cameras
2. Filter the point cloud
3. Tessellate it (alpha shape / fixed mesh first, Poisson afterwards)
4. Choose (main, side) camera bundles for stereo refinement
5. Export the bundles of every iteration

Usage:
    python run_view_selection.py --points ./cloud.npz --cameras ./cameras.npz --output ./bundles.json
"""

import argparse
import json
import sys
from pathlib import Path

import numpy as np

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from ViewSelection import RefinementHeuristic, HeuristicConfig, SENTINEL
from ViewSelection.core import homogenize


def load_point_cloud(path: Path):
    """
    Load a point cloud with normals.

    Args:
        path: .npz file with 'points' (N, 3 or 4) and 'normals' (N, k) arrays

    Returns:
        points: Homogeneous points (N, 4)
        normals: Normal/confidence vectors
    """
    if not path.exists():
        raise FileNotFoundError(f"Point cloud file not found: {path}")

    print(f"Loading point cloud from {path}...")
    data = np.load(path)
    points = np.asarray(data['points'], dtype=np.float64)
    if points.shape[1] == 3:
        points = homogenize(points)
    normals = np.asarray(data['normals'], dtype=np.float64)

    print(f"✓ Loaded: {len(points)} points")
    return points, normals


def load_cameras(path: Path):
    """Load (K, 4, 4) camera matrices from the 'cameras' array of an .npz file"""
    if not path.exists():
        raise FileNotFoundError(f"Camera file not found: {path}")

    cameras = np.asarray(np.load(path)['cameras'], dtype=np.float64)
    if cameras.ndim != 3 or cameras.shape[1:] != (4, 4):
        raise ValueError(f"Expected (K, 4, 4) cameras, got {cameras.shape}")

    print(f"✓ Loaded: {len(cameras)} cameras")
    return list(cameras)


def collect_bundles(heuristic: RefinementHeuristic):
    """Walk the bundle cursor the way the refinement driver does"""
    bundles = {}
    main = heuristic.begin_main()
    while main != SENTINEL:
        sides = []
        side = heuristic.begin_side(main)
        while side != SENTINEL:
            sides.append(side)
            side = heuristic.next_side(main)
        bundles[str(main)] = sides
        main = heuristic.next_main()
    return bundles


def main():
    parser = argparse.ArgumentParser(description="View Selection Heuristic")

    # Input/Output
    parser.add_argument('--points', type=str, required=True,
                       help='Point cloud .npz with points and normals arrays')
    parser.add_argument('--cameras', type=str, required=True,
                       help='Camera .npz with a (K, 4, 4) cameras array')
    parser.add_argument('--output', type=str, default='./bundles.json',
                       help='Output JSON file with the bundles of every iteration')
    parser.add_argument('--config', type=str, default=None,
                       help='JSON configuration file (command line options override it)')

    # Heuristic parameters
    parser.add_argument('--iterations', type=int, default=None,
                       help='Number of refinement iterations')
    parser.add_argument('--width', type=int, default=None,
                       help='Output image width')
    parser.add_argument('--height', type=int, default=None,
                       help='Output image height')
    parser.add_argument('--camera-threshold', type=float, default=None,
                       help='Camera density threshold factor')
    parser.add_argument('--in-mesh', type=str, default=None,
                       help='Fixed mesh used on the first iteration')
    parser.add_argument('--seed', type=int, default=None,
                       help='Seed of the random stream')

    # Logging
    parser.add_argument('--verbosity', type=int, default=None,
                       help='0 = warnings, 1 = progress, 2 = details')
    parser.add_argument('--log-file', type=str, default=None,
                       help='Log to file')

    args = parser.parse_args()

    settings = {}
    if args.config:
        settings = HeuristicConfig.from_json(args.config).to_dict()
    overrides = {
        'iteration_count': args.iterations,
        'width': args.width,
        'height': args.height,
        'camera_threshold': args.camera_threshold,
        'in_mesh_file': args.in_mesh,
        'seed': args.seed,
        'verbosity': args.verbosity,
        'log_file': args.log_file,
    }
    settings.update({key: value for key, value in overrides.items() if value is not None})

    try:
        config = HeuristicConfig.from_dict(settings)
        points, normals = load_point_cloud(Path(args.points))
        cameras = load_cameras(Path(args.cameras))
    except (ValueError, FileNotFoundError, KeyError) as e:
        print(f"Error loading inputs: {e}")
        return 1

    print("\n" + "="*70)
    print("VIEW SELECTION")
    print("="*70)
    print(f"Iterations: {config.iteration_count}")
    print(f"Render size: {config.width}x{config.height}")
    print(f"Camera threshold: {config.camera_threshold}")
    print("="*70 + "\n")

    heuristic = RefinementHeuristic(config)
    history = []

    try:
        while heuristic.not_happy(points):
            if heuristic.iteration > 1:
                points, normals = heuristic.filter_points(points, normals)
            mesh = heuristic.tessellate(points, normals)
            pair_count = heuristic.choose_cameras(mesh, cameras)
            history.append({
                'iteration': heuristic.iteration,
                'alpha': heuristic.alpha_vals[-1],
                'points': len(points),
                'faces': mesh.num_faces,
                'pairs': pair_count,
                'bundles': collect_bundles(heuristic),
            })
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, 'w') as f:
        json.dump(history, f, indent=2)

    print("\n" + "="*70)
    print("VIEW SELECTION COMPLETE")
    print("="*70)
    for entry in history:
        print(f"  Iteration {entry['iteration']}: {entry['pairs']} pairs, "
              f"{len(entry['bundles'])} main cameras")
    print(f"Bundles saved to {output}")
    print("="*70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
