"""Reference plane of the hit triangle and its plane-local 2D frame."""
import logging
from typing import Optional

import numpy as np

from surface_snap.contracts import PlaneBasis, ReferencePlane

logger = logging.getLogger(__name__)

_UNIT_TOLERANCE = 1e-6
_DEGENERATE_SINE = 1e-12  # |sin| of the corner angle at a


def build_reference_plane(
    a: np.ndarray,
    b: np.ndarray,
    c: np.ndarray,
    anchor: Optional[np.ndarray] = None,
) -> Optional[ReferencePlane]:
    """Plane through triangle (a, b, c), or None for a degenerate triangle.

    ``normal = normalize(cross(b - a, c - a))``, ``constant = dot(normal, a)``.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    c = np.asarray(c, dtype=float)
    cross = np.cross(b - a, c - a)
    length = float(np.linalg.norm(cross))
    scale = float(np.linalg.norm(b - a) * np.linalg.norm(c - a))
    if not np.isfinite(length) or length <= _DEGENERATE_SINE * scale or length == 0.0:
        logger.debug("Degenerate reference triangle (|cross| = %g)", length)
        return None

    normal = cross / length
    if not np.all(np.isfinite(normal)) or abs(float(np.linalg.norm(normal)) - 1.0) > _UNIT_TOLERANCE:
        logger.debug("Reference normal is not unit length: %s", normal)
        return None

    constant = float(np.dot(normal, a))
    if anchor is None:
        anchor_pt = a.copy()
    else:
        # Hit points carry raycast error; keep the anchor on the plane
        anchor_pt = np.asarray(anchor, dtype=float)
        anchor_pt = anchor_pt - (float(np.dot(normal, anchor_pt)) - constant) * normal
    return ReferencePlane(normal=normal, constant=constant, anchor=anchor_pt)


def plane_basis(plane: ReferencePlane) -> PlaneBasis:
    """In-plane orthonormal (u, v) axes.

    u is the world axis least aligned with the normal, Gram-Schmidt
    orthogonalised against it; ``v = normal x u``.
    """
    n = plane.normal
    axis = np.zeros(3)
    axis[int(np.argmin(np.abs(n)))] = 1.0
    u = axis - float(np.dot(axis, n)) * n
    u /= np.linalg.norm(u)
    v = np.cross(n, u)
    v /= np.linalg.norm(v)
    return PlaneBasis(origin=plane.anchor.copy(), u=u, v=v, normal=n.copy())


def to_plane_2d(basis: PlaneBasis, points: np.ndarray) -> np.ndarray:
    """Project world points ``(N, 3)`` to plane-local ``(N, 2)``."""
    d = np.asarray(points, dtype=float).reshape(-1, 3) - basis.origin
    return np.column_stack([d @ basis.u, d @ basis.v])


def from_plane_2d(basis: PlaneBasis, coords: np.ndarray) -> np.ndarray:
    """Map plane-local ``(N, 2)`` coordinates back to world ``(N, 3)``."""
    uv = np.asarray(coords, dtype=float).reshape(-1, 2)
    return basis.origin + np.outer(uv[:, 0], basis.u) + np.outer(uv[:, 1], basis.v)
