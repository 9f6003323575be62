"""Screen-space selection of the snap point nearest the cursor."""
import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from surface_snap.contracts import SnapPoint

logger = logging.getLogger(__name__)


def project_to_canvas(
    positions: np.ndarray,
    view_projection: np.ndarray,
    canvas_size: Tuple[float, float],
) -> Tuple[np.ndarray, np.ndarray]:
    """Project world points to canvas pixels.

    Args:
        positions: ``(N, 3)`` world-space points.
        view_projection: 4x4 camera ``projection @ view`` matrix.
        canvas_size: ``(width, height)`` in pixels.

    Returns:
        ``(pixels, visible)``: ``(N, 2)`` pixel coordinates (origin top-left,
        y down) and a mask of points in front of the camera (clip ``w > 0``).
    """
    matrix = np.asarray(view_projection, dtype=float)
    if matrix.shape != (4, 4):
        raise ValueError(f"view_projection must be 4x4, got shape {matrix.shape}")
    width, height = float(canvas_size[0]), float(canvas_size[1])
    if width <= 0.0 or height <= 0.0:
        raise ValueError(f"Canvas size must be positive, got {canvas_size}")

    pts = np.asarray(positions, dtype=float).reshape(-1, 3)
    clip = np.column_stack([pts, np.ones(len(pts))]) @ matrix.T
    w = clip[:, 3]
    visible = w > 0.0
    safe_w = np.where(visible, w, 1.0)
    ndc = clip[:, :2] / safe_w[:, None]

    pixels = np.column_stack([
        (ndc[:, 0] + 1.0) * 0.5 * width,
        (1.0 - ndc[:, 1]) * 0.5 * height,
    ])
    return pixels, visible


def ndc_to_canvas(cursor_ndc: Sequence[float], canvas_size: Tuple[float, float]) -> np.ndarray:
    width, height = float(canvas_size[0]), float(canvas_size[1])
    return np.array([
        (float(cursor_ndc[0]) + 1.0) * 0.5 * width,
        (1.0 - float(cursor_ndc[1])) * 0.5 * height,
    ])


def find_closest_snap_point(
    points: Sequence[SnapPoint],
    cursor_ndc: Sequence[float],
    view_projection: np.ndarray,
    canvas_size: Tuple[float, float],
    snap_radius_px: float = 20.0,
    buffer_px: float = 15.0,
) -> Optional[SnapPoint]:
    """Snap point nearest the cursor in pixels, if within ``snap_radius_px + buffer_px``.

    Ties go to the earliest point in *points*. Points behind the camera are
    never selected.
    """
    if not points:
        return None

    pixels, visible = project_to_canvas(
        np.array([p.position for p in points]), view_projection, canvas_size,
    )
    cursor = ndc_to_canvas(cursor_ndc, canvas_size)
    distances = np.hypot(pixels[:, 0] - cursor[0], pixels[:, 1] - cursor[1])

    limit = float(snap_radius_px) + float(buffer_px)
    best: Optional[int] = None
    best_distance = float("inf")
    for k, distance in enumerate(distances.tolist()):
        if not visible[k] or distance > limit:
            continue
        if distance < best_distance:
            best, best_distance = k, distance

    if best is None:
        return None
    logger.debug("Closest snap point %d at %.1f px", best, best_distance)
    return points[best]
