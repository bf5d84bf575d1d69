"""
Root conftest for reelplan/.

Adds reelplan/ to sys.path so that `schemas`, `planner`, `renderer` and the
test helpers are importable with flat imports, exactly as cli.py does when
the package is installed.

This file is picked up automatically by pytest when tests under
reelplan/tests/ are collected.
"""
import sys
from pathlib import Path

_PKG_ROOT = Path(__file__).parent
if str(_PKG_ROOT) not in sys.path:
    sys.path.insert(0, str(_PKG_ROOT))
