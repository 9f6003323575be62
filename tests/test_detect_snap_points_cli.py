from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import numpy as np

REPO_ROOT = Path(__file__).resolve().parent.parent
SCRIPT = REPO_ROOT / "scripts" / "detect_snap_points.py"


def test_cli_box_top_face(box_mesh, box_mesh_file: str, top_face, tmp_path: Path):
    out_path = tmp_path / "snaps.json"
    cmd = [
        sys.executable,
        str(SCRIPT),
        "--input",
        box_mesh_file,
        "--face",
        str(top_face(box_mesh)),
        "--output",
        str(out_path),
    ]
    proc = subprocess.run(cmd, capture_output=True, text=True)
    assert proc.returncode == 0, proc.stderr

    payload = json.loads(out_path.read_text())
    assert payload["count"] == 9
    kinds = [p["kind"] for p in payload["snap_points"]]
    assert kinds.count("edge-midpoint") == 4
    assert np.allclose(payload["snap_points"][-1]["position"], [0.0, 0.0, 1.0])


def test_cli_stdout_json(box_mesh_file: str):
    cmd = [sys.executable, str(SCRIPT), "--input", box_mesh_file, "--face", "0"]
    proc = subprocess.run(cmd, capture_output=True, text=True)
    assert proc.returncode == 0, proc.stderr
    assert json.loads(proc.stdout)["face"] == 0


def test_cli_rejects_out_of_range_face(box_mesh_file: str):
    cmd = [sys.executable, str(SCRIPT), "--input", box_mesh_file, "--face", "999"]
    proc = subprocess.run(cmd, capture_output=True, text=True)
    assert proc.returncode == 2
    assert "error:" in proc.stderr


def test_cli_requires_a_face(box_mesh_file: str):
    cmd = [sys.executable, str(SCRIPT), "--input", box_mesh_file]
    proc = subprocess.run(cmd, capture_output=True, text=True)
    assert proc.returncode != 0
