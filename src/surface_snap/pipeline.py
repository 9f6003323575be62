"""Snap-point detection: hit triangle -> coplanar face -> snap points."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Union

import numpy as np
import trimesh

from surface_snap.circle_fit import detect_circle_snap_points
from surface_snap.collector import collect_boundary_snap_points
from surface_snap.contracts import (
    MeshHit,
    MeshIndex,
    MeshInputError,
    SnapDetectionConfig,
    SnapPoint,
)
from surface_snap.mesh_index import canonicalize_positions, mesh_index_from_trimesh
from surface_snap.plane import build_reference_plane, plane_basis
from surface_snap.region import extract_boundary, grow_coplanar_region

logger = logging.getLogger(__name__)


def detect_snap_points(
    index: MeshIndex,
    hit: Union[MeshHit, int, None],
    config: Optional[SnapDetectionConfig] = None,
) -> List[SnapPoint]:
    """Snap points for the planar face containing the hit triangle.

    Algorithm:
    1. Reference plane from the hit triangle (degenerate -> no points)
    2. Flood-fill the contiguous coplanar region
    3. Split region edges into boundary and interior
    4. Circle fit on the boundary: centre + 4 cardinal points if accepted
    5. Otherwise boundary vertices, edge midpoints and centroid

    When the hit triangle fails its own coplanarity test the region is the
    hit triangle alone (``fallback_to_hit_triangle``), or no points when
    that option is off.

    An index quantised with other decimals than ``config.position_decimals``
    is re-canonicalised for this call.

    Raises:
        MeshInputError: if the hit triangle index is out of range.
    """
    if config is None:
        config = SnapDetectionConfig()
    config.validate()

    if hit is None:
        return []
    if index.decimals != config.position_decimals:
        index = replace(
            index,
            canonical=canonicalize_positions(index.positions, config.position_decimals),
            decimals=config.position_decimals,
        )
    if isinstance(hit, (int, np.integer)):
        hit = MeshHit(triangle_index=int(hit))

    tri_index = int(hit.triangle_index)
    if not 0 <= tri_index < index.triangle_count:
        raise MeshInputError(
            f"Hit triangle {tri_index} outside [0, {index.triangle_count})"
        )

    a, b, c = index.positions[index.triangles[tri_index]]
    plane = build_reference_plane(a, b, c, anchor=hit.point)
    if plane is None:
        logger.warning("Degenerate hit triangle %d; no snap points", tri_index)
        return []

    region = grow_coplanar_region(index, tri_index, plane, config)
    if not region:
        if not config.fallback_to_hit_triangle:
            return []
        region = [tri_index]

    boundary = extract_boundary(index, region)
    basis = plane_basis(plane)

    circle_points = detect_circle_snap_points(index, boundary, basis, config)
    if circle_points is not None:
        return circle_points
    return collect_boundary_snap_points(index, boundary, basis, config)


def detect_snap_points_on_trimesh(
    mesh: trimesh.Trimesh,
    face_index: int,
    hit_point: Optional[np.ndarray] = None,
    transform: Optional[np.ndarray] = None,
    config: Optional[SnapDetectionConfig] = None,
) -> List[SnapPoint]:
    """Convenience wrapper: index a trimesh mesh and detect on *face_index*.

    *hit_point* defaults to the centroid of the face in world space.
    """
    if config is None:
        config = SnapDetectionConfig()
    index = mesh_index_from_trimesh(mesh, transform=transform, decimals=config.position_decimals)
    if hit_point is None and 0 <= face_index < index.triangle_count:
        hit_point = index.positions[index.triangles[face_index]].mean(axis=0)
    return detect_snap_points(index, MeshHit(face_index, hit_point), config)
