"""
Boundary-based snap points: region vertices, edge midpoints and centroid.

Used whenever the region boundary is not recognised as a circle.
"""
import logging
from typing import Dict, List, Optional, Set, Tuple

import numpy as np
from shapely.geometry import Polygon

from surface_snap.contracts import (
    BoundarySet,
    MeshIndex,
    PlaneBasis,
    SnapDetectionConfig,
    SnapKind,
    SnapPoint,
)
from surface_snap.plane import from_plane_2d, to_plane_2d

logger = logging.getLogger(__name__)


def order_boundary_loop(boundary: BoundarySet) -> Optional[List[int]]:
    """Greedy walk of boundary vertices into a closed loop.

    Starts at the first boundary vertex and repeatedly steps to the first
    unvisited neighbour. Returns the visited vertices if the walk closes
    back onto the start with at least 3 vertices, otherwise None. There is
    no backtracking, so branching (non-manifold) or multiply-connected
    boundaries may only yield the first loop found, or nothing.
    """
    if not boundary.boundary_edges:
        return None

    neighbors: Dict[int, List[int]] = {}
    for i, j in boundary.boundary_edges:
        neighbors.setdefault(i, []).append(j)
        neighbors.setdefault(j, []).append(i)

    start = boundary.boundary_edges[0][0]
    loop = [start]
    visited = {start}
    current = start
    while True:
        nxt = next((n for n in neighbors[current] if n not in visited), None)
        if nxt is None:
            break
        loop.append(nxt)
        visited.add(nxt)
        current = nxt

    if len(loop) >= 3 and start in neighbors[current]:
        return loop
    return None


def boundary_centroid(
    index: MeshIndex,
    boundary: BoundarySet,
    basis: PlaneBasis,
) -> Optional[np.ndarray]:
    """Area-weighted centroid of the boundary loop, mapped back to world space.

    Falls back to the plain average of all boundary vertices when no loop
    can be ordered or the loop encloses no area.
    """
    vertex_ids = boundary.boundary_vertices()
    if not vertex_ids:
        return None

    loop = order_boundary_loop(boundary)
    if loop is not None:
        polygon = Polygon(to_plane_2d(basis, index.positions[loop]))
        if polygon.area > 0.0:
            centre = polygon.centroid
            if not centre.is_empty:
                return from_plane_2d(basis, [[centre.x, centre.y]])[0]
        logger.debug("Boundary loop of %d vertices encloses no area", len(loop))
    else:
        logger.debug("Boundary did not close into a loop; averaging vertices")

    return index.positions[vertex_ids].mean(axis=0)


def collect_boundary_snap_points(
    index: MeshIndex,
    boundary: BoundarySet,
    basis: PlaneBasis,
    config: Optional[SnapDetectionConfig] = None,
) -> List[SnapPoint]:
    """Boundary vertices, boundary edge midpoints and the region centroid.

    Points are de-duplicated by quantised position; the first occurrence
    keeps its tag.
    """
    if config is None:
        config = SnapDetectionConfig()

    scale = 10.0 ** config.snap_key_decimals
    seen: Set[Tuple[int, int, int]] = set()
    points: List[SnapPoint] = []

    def add(position: np.ndarray, kind: SnapKind) -> None:
        key = tuple(int(k) for k in np.rint(position * scale))
        if key in seen:
            return
        seen.add(key)
        points.append(SnapPoint(position=np.array(position, dtype=float), kind=kind))

    positions = index.positions
    for i, j in boundary.boundary_edges:
        vi, vj = positions[i], positions[j]
        add(vi, SnapKind.VERTEX)
        add(vj, SnapKind.VERTEX)
        add(0.5 * (vi + vj), SnapKind.EDGE_MIDPOINT)

    if config.include_interior_midpoints:
        for i, j in boundary.interior_edges:
            add(0.5 * (positions[i] + positions[j]), SnapKind.EDGE_MIDPOINT)

    centroid = boundary_centroid(index, boundary, basis)
    if centroid is not None:
        add(centroid, SnapKind.VERTEX)

    logger.debug(
        "Collected %d boundary snap points from %d boundary edges",
        len(points), len(boundary.boundary_edges),
    )
    return points
