"""Contracts for surface snap-point detection."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]
EdgeKey = Tuple[int, int]


class MeshInputError(ValueError):
    """Mesh buffers or hit data have an invalid shape or range."""
    pass


class SnapKind(Enum):
    """Tag carried by every snap point."""
    VERTEX = "vertex"
    EDGE_MIDPOINT = "edge-midpoint"


@dataclass(frozen=True)
class SnapDetectionConfig:
    """Tunable constants for snap-point detection and selection."""

    position_decimals: int = 5
    snap_key_decimals: int = 6
    normal_cos_tolerance: float = 0.9995   # ~1.8 deg
    plane_distance_tolerance: float = 1e-4  # world units
    circle_min_samples: int = 12
    circle_max_relative_rms: float = 0.03
    circle_max_aspect_ratio: float = 1.05
    solve_pivot_epsilon: float = 1e-12
    include_interior_midpoints: bool = False
    fallback_to_hit_triangle: bool = True

    # Pointer selection
    snap_radius_px: float = 20.0
    snap_buffer_px: float = 15.0

    def validate(self) -> None:
        if self.position_decimals < 0 or self.snap_key_decimals < 0:
            raise ValueError("Quantisation decimals must be >= 0")
        if not 0.0 < self.normal_cos_tolerance <= 1.0:
            raise ValueError(
                f"normal_cos_tolerance must be in (0, 1], got {self.normal_cos_tolerance}"
            )
        if self.plane_distance_tolerance <= 0.0:
            raise ValueError("plane_distance_tolerance must be > 0")
        if self.circle_min_samples < 3:
            raise ValueError("circle_min_samples must be >= 3")
        if self.circle_max_relative_rms < 0.0:
            raise ValueError("circle_max_relative_rms must be >= 0")
        if self.circle_max_aspect_ratio < 1.0:
            raise ValueError("circle_max_aspect_ratio must be >= 1")
        if self.solve_pivot_epsilon <= 0.0:
            raise ValueError("solve_pivot_epsilon must be > 0")
        if self.snap_radius_px < 0.0 or self.snap_buffer_px < 0.0:
            raise ValueError("Snap radius and buffer must be >= 0 pixels")


@dataclass(frozen=True, eq=False)
class SnapPoint:
    """A world-space position an interactive cursor may lock onto."""

    position: np.ndarray  # (3,)
    kind: SnapKind

    def to_dict(self) -> Dict[str, object]:
        return {
            "position": [float(c) for c in self.position],
            "kind": self.kind.value,
        }


@dataclass(frozen=True)
class MeshHit:
    """Result of an external ray/mesh intersection."""

    triangle_index: int
    point: Optional[np.ndarray] = None  # (3,) world-space hit point


@dataclass
class MeshIndex:
    """World-space vertex positions, triangles and canonical-vertex mapping.

    ``canonical[i]`` is the raw index of the first vertex sharing vertex
    ``i``'s quantised position, so ``positions[canonical[i]]`` is always a
    valid representative.
    """

    positions: np.ndarray  # (N, 3) float64, world space
    triangles: np.ndarray  # (T, 3) int64, raw vertex indices
    canonical: np.ndarray  # (N,) int64
    decimals: int = 5  # quantisation behind `canonical`

    @property
    def triangle_count(self) -> int:
        return int(len(self.triangles))

    def canonical_triangle(self, tri_index: int) -> Tuple[int, int, int]:
        a, b, c = self.canonical[self.triangles[tri_index]]
        return int(a), int(b), int(c)


@dataclass(frozen=True, eq=False)
class ReferencePlane:
    """Plane ``dot(normal, p) == constant`` through ``anchor``."""

    normal: np.ndarray  # (3,) unit
    constant: float
    anchor: np.ndarray  # (3,)

    def signed_distance(self, points: np.ndarray) -> np.ndarray:
        return np.asarray(points, dtype=float) @ self.normal - self.constant


@dataclass(frozen=True, eq=False)
class PlaneBasis:
    """Orthonormal in-plane axes for 2D plane-local coordinates."""

    origin: np.ndarray  # (3,)
    u: np.ndarray       # (3,)
    v: np.ndarray       # (3,)
    normal: np.ndarray  # (3,)


@dataclass
class BoundarySet:
    """Canonical edges of a region, split by how many region triangles use them.

    Edges are stored in first-seen orientation and first-seen order.
    """

    boundary_edges: List[EdgeKey] = field(default_factory=list)
    interior_edges: List[EdgeKey] = field(default_factory=list)
    non_manifold_edges: List[EdgeKey] = field(default_factory=list)

    def boundary_vertices(self) -> List[int]:
        """Distinct boundary vertex ids in first-seen order."""
        seen: Dict[int, None] = {}
        for i, j in self.boundary_edges:
            seen.setdefault(i, None)
            seen.setdefault(j, None)
        return list(seen)


@dataclass(frozen=True)
class CircleFit:
    """Algebraic circle fit in plane-local 2D coordinates."""

    center: Vec2
    radius: float
    relative_rms: float
    aspect_ratio: float
    sample_count: int
