"""Hover state for an interactive tool: last detected points and the active one."""
import logging
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from surface_snap.contracts import MeshHit, MeshIndex, SnapDetectionConfig, SnapPoint
from surface_snap.pipeline import detect_snap_points
from surface_snap.selector import find_closest_snap_point

logger = logging.getLogger(__name__)


class SnapSession:
    """Keeps the last detected snap points while the pointer is off the mesh.

    Every detection is still computed from scratch; only the resulting
    list is remembered so the cursor can keep snapping to a face it has
    just left.
    """

    def __init__(self, config: Optional[SnapDetectionConfig] = None):
        self.config = config or SnapDetectionConfig()
        self.config.validate()
        self._last_points: List[SnapPoint] = []
        self._active: Optional[SnapPoint] = None

    @property
    def points(self) -> List[SnapPoint]:
        return list(self._last_points)

    @property
    def active(self) -> Optional[SnapPoint]:
        return self._active

    def on_hover(
        self,
        index: Optional[MeshIndex],
        hit: Union[MeshHit, int, None],
    ) -> List[SnapPoint]:
        """Detect on a hit, otherwise fall back to the last detected result."""
        if index is not None and hit is not None:
            self._last_points = detect_snap_points(index, hit, self.config)
        return list(self._last_points)

    def on_pointer_move(
        self,
        index: Optional[MeshIndex],
        hit: Union[MeshHit, int, None],
        cursor_ndc: Sequence[float],
        view_projection: np.ndarray,
        canvas_size: Tuple[float, float],
    ) -> Optional[SnapPoint]:
        """Refresh the candidate list and pick the active snap point."""
        points = self.on_hover(index, hit)
        self._active = find_closest_snap_point(
            points,
            cursor_ndc,
            view_projection,
            canvas_size,
            snap_radius_px=self.config.snap_radius_px,
            buffer_px=self.config.snap_buffer_px,
        )
        return self._active

    def reset(self) -> None:
        self._last_points = []
        self._active = None
