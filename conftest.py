"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

# Ensure the project root (for ``tests`` and ``stats``) and ``src`` (for
# ``trace_trees`` when not installed) are importable from any directory.
_project_root = Path(__file__).resolve().parent
for _path in (str(_project_root), str(_project_root / "src")):
    if _path not in sys.path:
        sys.path.insert(0, _path)
