"""
Coplanar region growing and boundary extraction.

Starting from the hit triangle, flood-fill across shared canonical edges,
restricted to triangles that lie on the reference plane. The region's
edges are then split into boundary (perimeter) and interior edges.
"""
import logging
from collections import deque
from typing import Dict, List, Optional, Tuple

import numpy as np

from surface_snap.contracts import (
    BoundarySet,
    EdgeKey,
    MeshIndex,
    ReferencePlane,
    SnapDetectionConfig,
)

logger = logging.getLogger(__name__)


def edge_key(i: int, j: int) -> EdgeKey:
    return (i, j) if i < j else (j, i)


def _triangle_edge_keys(a: int, b: int, c: int) -> List[EdgeKey]:
    # Edges collapsed to one canonical vertex do not connect triangles
    return [edge_key(i, j) for i, j in ((a, b), (b, c), (c, a)) if i != j]


def coplanar_candidates(
    index: MeshIndex,
    plane: ReferencePlane,
    config: Optional[SnapDetectionConfig] = None,
) -> np.ndarray:
    """Boolean mask over triangles lying on *plane* within tolerance.

    A triangle qualifies when ``|dot(face_normal, plane.normal)|`` reaches
    ``normal_cos_tolerance`` and all three vertices are closer than
    ``plane_distance_tolerance`` to the plane. Degenerate triangles have an
    undefined normal and never qualify.
    """
    if config is None:
        config = SnapDetectionConfig()
    if index.triangle_count == 0:
        return np.zeros(0, dtype=bool)

    tris = index.positions[index.triangles]  # (T, 3, 3)
    cross = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
    lengths = np.linalg.norm(cross, axis=1)
    with np.errstate(invalid="ignore", divide="ignore"):
        normals = cross / lengths[:, None]
        aligned = np.abs(normals @ plane.normal) >= config.normal_cos_tolerance

    dists = np.abs(tris @ plane.normal - plane.constant)  # (T, 3)
    on_plane = np.all(dists < config.plane_distance_tolerance, axis=1)
    return aligned & on_plane


def build_edge_adjacency(
    index: MeshIndex,
    triangle_ids: np.ndarray,
) -> Dict[EdgeKey, List[int]]:
    """Map each canonical edge to the listed triangles that use it."""
    adjacency: Dict[EdgeKey, List[int]] = {}
    if len(triangle_ids) == 0:
        return adjacency
    canon = index.canonical[index.triangles[triangle_ids]]
    for tri, (a, b, c) in zip(triangle_ids.tolist(), canon.tolist()):
        for key in _triangle_edge_keys(a, b, c):
            adjacency.setdefault(key, []).append(tri)
    return adjacency


def grow_coplanar_region(
    index: MeshIndex,
    hit_triangle: int,
    plane: ReferencePlane,
    config: Optional[SnapDetectionConfig] = None,
) -> List[int]:
    """Breadth-first flood fill of coplanar triangles connected to *hit_triangle*.

    Returns triangle indices in visit order. Empty when the hit triangle is
    itself not a coplanarity candidate.
    """
    if config is None:
        config = SnapDetectionConfig()

    candidates = coplanar_candidates(index, plane, config)
    if not candidates[hit_triangle]:
        logger.debug("Hit triangle %d failed its own coplanarity test", hit_triangle)
        return []

    adjacency = build_edge_adjacency(index, np.flatnonzero(candidates))

    visited = {hit_triangle}
    region = [hit_triangle]
    queue = deque([hit_triangle])
    while queue:
        tri = queue.popleft()
        a, b, c = index.canonical_triangle(tri)
        for key in _triangle_edge_keys(a, b, c):
            for neighbor in adjacency.get(key, ()):
                if neighbor not in visited:
                    visited.add(neighbor)
                    region.append(neighbor)
                    queue.append(neighbor)

    logger.debug(
        "Coplanar region from triangle %d: %d of %d candidates",
        hit_triangle, len(region), int(candidates.sum()),
    )
    return region


def extract_boundary(index: MeshIndex, region: List[int]) -> BoundarySet:
    """Classify the region's canonical edges by use count.

    Count 1 is boundary, count 2 interior. Edges used by more than two
    region triangles are non-manifold; they are reported as boundary and
    also listed in ``non_manifold_edges``.
    """
    counts: Dict[EdgeKey, int] = {}
    oriented: Dict[EdgeKey, Tuple[int, int]] = {}
    for tri in region:
        a, b, c = index.canonical_triangle(tri)
        for i, j in ((a, b), (b, c), (c, a)):
            if i == j:
                continue
            key = edge_key(i, j)
            counts[key] = counts.get(key, 0) + 1
            oriented.setdefault(key, (i, j))

    result = BoundarySet()
    for key, count in counts.items():
        if count == 1:
            result.boundary_edges.append(oriented[key])
        elif count == 2:
            result.interior_edges.append(oriented[key])
        else:
            result.boundary_edges.append(oriented[key])
            result.non_manifold_edges.append(oriented[key])

    if result.non_manifold_edges:
        logger.debug(
            "Region has %d non-manifold edges, treated as boundary",
            len(result.non_manifold_edges),
        )
    return result
