"""
World-space vertex/triangle buffers and canonical-vertex merging.

Non-indexed geometry repeats a vertex once per triangle, so adjacency has
to be computed over *canonical* vertices: raw vertices whose world
positions agree after quantisation share one canonical id.
"""
import logging
from typing import Optional, Sequence

import numpy as np
import trimesh

from surface_snap.contracts import MeshIndex, MeshInputError

logger = logging.getLogger(__name__)


def build_mesh_index(
    positions,
    indices=None,
    transform: Optional[np.ndarray] = None,
    decimals: int = 5,
) -> MeshIndex:
    """Build a MeshIndex from raw vertex and index buffers.

    Args:
        positions: Flat ``(3N,)`` or ``(N, 3)`` vertex buffer.
        indices: Flat ``(3T,)`` or ``(T, 3)`` index buffer. ``None`` means
            every three consecutive positions form a triangle.
        transform: Optional 4x4 local-to-world matrix applied to positions.
            Without it positions are taken to be world space already.
        decimals: Quantisation used for canonical-vertex merging.

    Raises:
        MeshInputError: on malformed buffers or out-of-range indices.
    """
    world = _as_positions(positions)

    if transform is not None:
        matrix = np.asarray(transform, dtype=float)
        if matrix.shape != (4, 4):
            raise MeshInputError(f"transform must be 4x4, got shape {matrix.shape}")
        if len(world):
            world = trimesh.transformations.transform_points(world, matrix)

    n_vertices = len(world)
    if indices is None:
        if n_vertices % 3 != 0:
            raise MeshInputError(
                f"Implicit triangulation needs a multiple of 3 vertices, got {n_vertices}"
            )
        triangles = np.arange(n_vertices, dtype=np.int64).reshape(-1, 3)
    else:
        triangles = _as_triangles(indices, n_vertices)

    canonical = canonicalize_positions(world, decimals)
    logger.debug(
        "Indexed %d vertices (%d canonical), %d triangles",
        n_vertices, len(np.unique(canonical)), len(triangles),
    )
    return MeshIndex(
        positions=world, triangles=triangles, canonical=canonical, decimals=decimals,
    )


def mesh_index_from_trimesh(
    mesh: trimesh.Trimesh,
    transform: Optional[np.ndarray] = None,
    decimals: int = 5,
) -> MeshIndex:
    """Build a MeshIndex from a trimesh mesh (optionally placed by *transform*)."""
    return build_mesh_index(
        np.asarray(mesh.vertices, dtype=float),
        np.asarray(mesh.faces, dtype=np.int64),
        transform=transform,
        decimals=decimals,
    )


def canonicalize_positions(positions: np.ndarray, decimals: int = 5) -> np.ndarray:
    """Map each vertex to the raw index of the first vertex at the same quantised position."""
    if len(positions) == 0:
        return np.zeros(0, dtype=np.int64)
    # Integer keys: -0.0 and 0.0 collapse to the same cell
    keys = np.rint(np.asarray(positions, dtype=float) * (10.0 ** decimals)).astype(np.int64)
    _, first, inverse = np.unique(keys, axis=0, return_index=True, return_inverse=True)
    return first[inverse.reshape(-1)].astype(np.int64)


def resolve_hit_triangle(triangles: np.ndarray, face: Sequence[int]) -> Optional[int]:
    """Find the triangle whose vertex triple matches *face* up to cyclic rotation.

    Raycasters report the hit face as its three raw vertex indices; this
    recovers the triangle's position in the index buffer.
    """
    if len(triangles) == 0:
        return None
    a, b, c = (int(x) for x in face)
    tris = np.asarray(triangles)
    match = (
        ((tris[:, 0] == a) & (tris[:, 1] == b) & (tris[:, 2] == c))
        | ((tris[:, 0] == b) & (tris[:, 1] == c) & (tris[:, 2] == a))
        | ((tris[:, 0] == c) & (tris[:, 1] == a) & (tris[:, 2] == b))
    )
    hits = np.flatnonzero(match)
    if len(hits) == 0:
        return None
    return int(hits[0])


# ─── Validation ──────────────────────────────────────────────────────────────

def _as_positions(positions) -> np.ndarray:
    arr = np.asarray(positions, dtype=float)
    if arr.ndim == 1:
        if arr.size % 3 != 0:
            raise MeshInputError(
                f"Flat position buffer length must be a multiple of 3, got {arr.size}"
            )
        arr = arr.reshape(-1, 3)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise MeshInputError(f"Positions must have shape (N, 3), got {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise MeshInputError("Positions contain non-finite values")
    return arr


def _as_triangles(indices, n_vertices: int) -> np.ndarray:
    arr = np.asarray(indices)
    if arr.size == 0:
        return np.zeros((0, 3), dtype=np.int64)
    if not np.issubdtype(arr.dtype, np.integer):
        raise MeshInputError(f"Index buffer must be integral, got dtype {arr.dtype}")
    if arr.ndim == 1:
        if arr.size % 3 != 0:
            raise MeshInputError(
                f"Index buffer length must be a multiple of 3, got {arr.size}"
            )
        arr = arr.reshape(-1, 3)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise MeshInputError(f"Triangles must have shape (T, 3), got {arr.shape}")
    arr = arr.astype(np.int64)
    if arr.min() < 0 or arr.max() >= n_vertices:
        raise MeshInputError(
            f"Index buffer references vertex outside [0, {n_vertices}): "
            f"min={int(arr.min())}, max={int(arr.max())}"
        )
    return arr
