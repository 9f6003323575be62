"""Public API for surface snap-point detection."""

from surface_snap.contracts import (
    CircleFit,
    MeshHit,
    MeshIndex,
    MeshInputError,
    ReferencePlane,
    SnapDetectionConfig,
    SnapKind,
    SnapPoint,
)
from surface_snap.mesh_index import build_mesh_index, mesh_index_from_trimesh, resolve_hit_triangle
from surface_snap.pipeline import detect_snap_points, detect_snap_points_on_trimesh
from surface_snap.selector import find_closest_snap_point
from surface_snap.session import SnapSession

__all__ = [
    "CircleFit",
    "MeshHit",
    "MeshIndex",
    "MeshInputError",
    "ReferencePlane",
    "SnapDetectionConfig",
    "SnapKind",
    "SnapPoint",
    "SnapSession",
    "build_mesh_index",
    "detect_snap_points",
    "detect_snap_points_on_trimesh",
    "find_closest_snap_point",
    "mesh_index_from_trimesh",
    "resolve_hit_triangle",
]
