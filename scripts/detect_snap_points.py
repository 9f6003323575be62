#!/usr/bin/env python3
"""
Detect snap points on one face of a mesh file.

Loads a mesh with trimesh, treats the given triangle as the cursor hit and
prints the resulting snap points as JSON.

Usage:
    venv/bin/python3 scripts/detect_snap_points.py --input part.stl --face 12
    venv/bin/python3 scripts/detect_snap_points.py --input part.glb --face-vertices 4 5 6 --output snaps.json

Exit codes:
    0 — snap points written (possibly an empty list)
    2 — invalid input
"""
import sys
import argparse
import json
import logging
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import trimesh

from surface_snap import (
    MeshHit,
    MeshInputError,
    SnapDetectionConfig,
    detect_snap_points,
    mesh_index_from_trimesh,
    resolve_hit_triangle,
)

logger = logging.getLogger("detect_snap_points")


def load_triangle_mesh(filepath: str) -> trimesh.Trimesh:
    """Load a mesh file, flattening scenes into one world-space mesh."""
    loaded = trimesh.load(filepath, process=False)
    if isinstance(loaded, trimesh.Scene):
        mesh = loaded.to_mesh()
        if not isinstance(mesh, trimesh.Trimesh) or len(mesh.faces) == 0:
            raise ValueError(f"No triangle meshes found in {filepath}")
        return mesh
    if not isinstance(loaded, trimesh.Trimesh):
        raise ValueError(f"Unsupported geometry in {filepath}: {type(loaded).__name__}")
    return loaded


def main():
    parser = argparse.ArgumentParser(
        description="Detect snap points on a planar face of a mesh"
    )
    parser.add_argument(
        "--input", required=True, type=str, help="Mesh file (STL/OBJ/GLB/PLY)"
    )
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--face", type=int, help="Index of the hit triangle",
    )
    target.add_argument(
        "--face-vertices", type=int, nargs=3, metavar=("A", "B", "C"),
        help="Hit triangle given by its three vertex indices",
    )
    parser.add_argument(
        "--output", type=str, default=None,
        help="Write JSON here instead of stdout",
    )
    parser.add_argument(
        "--normal-cos", type=float, default=0.9995,
        help="Minimum |cos| between face and reference normals (default: 0.9995)",
    )
    parser.add_argument(
        "--plane-tolerance", type=float, default=1e-4,
        help="Max vertex distance from the reference plane (default: 1e-4)",
    )
    parser.add_argument(
        "--circle-min-samples", type=int, default=12,
        help="Boundary vertices needed to attempt a circle fit (default: 12)",
    )
    parser.add_argument(
        "--interior-midpoints", action="store_true",
        help="Also emit midpoints of interior edges",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="DEBUG logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = SnapDetectionConfig(
        normal_cos_tolerance=args.normal_cos,
        plane_distance_tolerance=args.plane_tolerance,
        circle_min_samples=args.circle_min_samples,
        include_interior_midpoints=args.interior_midpoints,
    )

    try:
        config.validate()
        mesh = load_triangle_mesh(args.input)
        index = mesh_index_from_trimesh(mesh, decimals=config.position_decimals)

        face = args.face
        if args.face_vertices is not None:
            face = resolve_hit_triangle(index.triangles, args.face_vertices)
            if face is None:
                raise MeshInputError(
                    f"No triangle with vertices {tuple(args.face_vertices)}"
                )

        points = detect_snap_points(index, MeshHit(triangle_index=face), config)
    except (ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    logger.info("%d snap points on face %d", len(points), face)
    payload = {
        "input": args.input,
        "face": int(face),
        "count": len(points),
        "snap_points": [p.to_dict() for p in points],
    }

    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w") as f:
            json.dump(payload, f, indent=2)
        print(f"Snap points written to: {out_path}")
    else:
        print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
