"""
Circle detection on a planar region boundary.

Boundary vertices are projected into the plane's 2D frame and fitted with
an algebraic least-squares circle (Kasa fit). Tessellated round faces,
such as cylinder caps or drilled holes, pass the residual and aspect
checks and get centre/cardinal snap points instead of dozens of vertices.
"""
import logging
from typing import List, Optional

import numpy as np

from surface_snap.contracts import (
    BoundarySet,
    CircleFit,
    MeshIndex,
    PlaneBasis,
    SnapDetectionConfig,
    SnapKind,
    SnapPoint,
)
from surface_snap.plane import from_plane_2d, to_plane_2d

logger = logging.getLogger(__name__)


def fit_circle_2d(points: np.ndarray, pivot_epsilon: float = 1e-12) -> Optional[CircleFit]:
    """Least-squares circle through 2D points.

    Solves ``x^2 + y^2 = a*x + b*y + c`` in the least-squares sense via
    the 3x3 normal equations, giving centre ``(a/2, b/2)`` and radius
    ``sqrt(cx^2 + cy^2 + c)``. Returns None when fewer than 3 points are
    given or the system is singular. A negative radius-squared yields a
    NaN radius; :func:`validate_circle_fit` rejects it.
    """
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    n = len(pts)
    if n < 3:
        return None

    # Work about the mean for conditioning, shift the centre back afterwards
    mean = pts.mean(axis=0)
    x = pts[:, 0] - mean[0]
    y = pts[:, 1] - mean[1]
    z = x * x + y * y

    normal_matrix = np.array([
        [np.sum(x * x), np.sum(x * y), np.sum(x)],
        [np.sum(x * y), np.sum(y * y), np.sum(y)],
        [np.sum(x), np.sum(y), float(n)],
    ])
    rhs = np.array([np.sum(z * x), np.sum(z * y), np.sum(z)])

    solution = solve_3x3(normal_matrix, rhs, pivot_epsilon)
    if solution is None:
        logger.debug("Circle fit normal equations are singular (n=%d)", n)
        return None

    cx, cy = 0.5 * solution[0], 0.5 * solution[1]
    radius_sq = cx * cx + cy * cy + solution[2]
    radius = float(np.sqrt(radius_sq)) if radius_sq > 0.0 else float("nan")

    if np.isfinite(radius) and radius > 0.0:
        dists = np.hypot(x - cx, y - cy)
        relative_rms = float(np.sqrt(np.mean((dists - radius) ** 2)) / radius)
    else:
        relative_rms = float("inf")

    extents = pts.max(axis=0) - pts.min(axis=0)
    long_side, short_side = float(extents.max()), float(extents.min())
    aspect_ratio = long_side / short_side if short_side > 0.0 else float("inf")

    return CircleFit(
        center=(float(cx + mean[0]), float(cy + mean[1])),
        radius=radius,
        relative_rms=relative_rms,
        aspect_ratio=aspect_ratio,
        sample_count=n,
    )


def solve_3x3(
    matrix: np.ndarray,
    rhs: np.ndarray,
    pivot_epsilon: float = 1e-12,
) -> Optional[np.ndarray]:
    """Gaussian elimination with partial pivoting; None if a pivot is below *pivot_epsilon*."""
    a = np.array(matrix, dtype=float)
    b = np.array(rhs, dtype=float)
    size = len(b)

    for col in range(size):
        pivot = col + int(np.argmax(np.abs(a[col:, col])))
        if abs(a[pivot, col]) < pivot_epsilon:
            return None
        if pivot != col:
            a[[col, pivot]] = a[[pivot, col]]
            b[[col, pivot]] = b[[pivot, col]]
        for row in range(col + 1, size):
            factor = a[row, col] / a[col, col]
            a[row, col:] -= factor * a[col, col:]
            b[row] -= factor * b[col]

    solution = np.zeros(size)
    for row in range(size - 1, -1, -1):
        solution[row] = (b[row] - a[row, row + 1:] @ solution[row + 1:]) / a[row, row]
    return solution


def validate_circle_fit(
    fit: Optional[CircleFit],
    config: Optional[SnapDetectionConfig] = None,
) -> bool:
    """Accept a fit only if radius, relative RMS and bounding-box aspect all pass."""
    if config is None:
        config = SnapDetectionConfig()
    if fit is None:
        return False
    if not (np.isfinite(fit.radius) and fit.radius > 0.0):
        logger.debug("Circle rejected: radius %g", fit.radius)
        return False
    if fit.relative_rms > config.circle_max_relative_rms:
        logger.debug(
            "Circle rejected: relative RMS %.4f > %.4f",
            fit.relative_rms, config.circle_max_relative_rms,
        )
        return False
    if fit.aspect_ratio > config.circle_max_aspect_ratio:
        logger.debug(
            "Circle rejected: aspect %.4f > %.4f",
            fit.aspect_ratio, config.circle_max_aspect_ratio,
        )
        return False
    return True


def detect_circle_snap_points(
    index: MeshIndex,
    boundary: BoundarySet,
    basis: PlaneBasis,
    config: Optional[SnapDetectionConfig] = None,
) -> Optional[List[SnapPoint]]:
    """Centre and cardinal snap points if the boundary is circular, else None.

    Emits ``centre + r*u``, ``centre - r*u``, ``centre + r*v``,
    ``centre - r*v`` tagged as edge midpoints, then the centre tagged as a
    vertex.
    """
    if config is None:
        config = SnapDetectionConfig()

    vertex_ids = boundary.boundary_vertices()
    if len(vertex_ids) < config.circle_min_samples:
        logger.debug(
            "Circle detection skipped: %d boundary vertices < %d",
            len(vertex_ids), config.circle_min_samples,
        )
        return None

    coords = to_plane_2d(basis, index.positions[vertex_ids])
    fit = fit_circle_2d(coords, config.solve_pivot_epsilon)
    if not validate_circle_fit(fit, config):
        return None

    cx, cy = fit.center
    r = fit.radius
    local = np.array([
        [cx + r, cy],
        [cx - r, cy],
        [cx, cy + r],
        [cx, cy - r],
        [cx, cy],
    ])
    world = from_plane_2d(basis, local)
    logger.debug(
        "Circle accepted: r=%.6g, rel_rms=%.4f, aspect=%.4f, n=%d",
        r, fit.relative_rms, fit.aspect_ratio, fit.sample_count,
    )

    points = [SnapPoint(position=p, kind=SnapKind.EDGE_MIDPOINT) for p in world[:4]]
    points.append(SnapPoint(position=world[4], kind=SnapKind.VERTEX))
    return points
