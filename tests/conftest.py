"""
Shared test fixtures for snap-point detection tests.
"""
import sys
from pathlib import Path

import numpy as np
import pytest
import trimesh

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from surface_snap import MeshIndex, build_mesh_index


def make_fan(
    sections: int,
    radius: float = 5.0,
    center=(0.0, 0.0, 0.0),
) -> MeshIndex:
    """Regular polygon in the z=center[2] plane, fanned from its centre vertex."""
    angles = np.linspace(0.0, 2.0 * np.pi, sections, endpoint=False)
    rim = np.column_stack([
        center[0] + radius * np.cos(angles),
        center[1] + radius * np.sin(angles),
        np.full(sections, center[2]),
    ])
    positions = np.vstack([np.array(center, dtype=float), rim])
    faces = [[0, 1 + i, 1 + (i + 1) % sections] for i in range(sections)]
    return build_mesh_index(positions, np.array(faces))


def make_grid(nx: int, ny: int, spacing: float = 1.0) -> MeshIndex:
    """Flat indexed grid of nx * ny squares (two triangles each) in z=0."""
    xs = np.arange(nx + 1, dtype=float) * spacing
    ys = np.arange(ny + 1, dtype=float) * spacing
    grid_x, grid_y = np.meshgrid(xs, ys, indexing="xy")
    positions = np.column_stack(
        [grid_x.reshape(-1), grid_y.reshape(-1), np.zeros(grid_x.size)]
    )
    faces = []
    for j in range(ny):
        for i in range(nx):
            v00 = j * (nx + 1) + i
            v10 = v00 + 1
            v01 = v00 + nx + 1
            v11 = v01 + 1
            faces.append([v00, v10, v11])
            faces.append([v00, v11, v01])
    return build_mesh_index(positions, np.array(faces))


@pytest.fixture
def fan_factory():
    return make_fan


@pytest.fixture
def grid_factory():
    return make_grid


@pytest.fixture
def square_quad_index():
    """2x2 square split into 4 triangles around its centre, non-indexed.

    Every triangle carries its own copies of the shared vertices, so
    adjacency only exists through canonical-vertex merging.
    """
    c = [1.0, 1.0, 0.0]
    corners = [[0.0, 0.0, 0.0], [2.0, 0.0, 0.0], [2.0, 2.0, 0.0], [0.0, 2.0, 0.0]]
    positions = []
    for i in range(4):
        positions.extend([c, corners[i], corners[(i + 1) % 4]])
    return build_mesh_index(np.array(positions).reshape(-1))


@pytest.fixture
def l_shape_index():
    """L-shaped planar face made of three unit squares (area 3)."""
    positions = np.array([
        [0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0],
        [0.0, 1.0, 0.0], [1.0, 1.0, 0.0], [2.0, 1.0, 0.0],
        [0.0, 2.0, 0.0], [1.0, 2.0, 0.0],
    ])
    faces = np.array([
        [0, 1, 4], [0, 4, 3],
        [1, 2, 5], [1, 5, 4],
        [3, 4, 7], [3, 7, 6],
    ])
    return build_mesh_index(positions, faces)


@pytest.fixture
def box_mesh():
    """A 2x2x2 box centred at the origin."""
    return trimesh.creation.box(extents=[2.0, 2.0, 2.0])


@pytest.fixture
def cylinder_mesh():
    """A 32-section cylinder (radius=3, height=4) centred at the origin."""
    return trimesh.creation.cylinder(radius=3.0, height=4.0, sections=32)


@pytest.fixture
def box_mesh_file(box_mesh, tmp_path):
    """The box mesh written to an STL file."""
    path = tmp_path / "box.stl"
    box_mesh.export(str(path))
    return str(path)


@pytest.fixture
def top_face():
    """Index of the first face of a mesh whose normal points along +z."""
    def _top_face(mesh: trimesh.Trimesh) -> int:
        return int(np.flatnonzero(mesh.face_normals[:, 2] > 0.999)[0])
    return _top_face
