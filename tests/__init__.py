"""Test package for tailscale_rotation.

Making `tests/` a package gives test modules fully-qualified names so the
shared constants in `tests/conftest.py` can be imported relatively.
"""

import sys
from pathlib import Path

# Ensure src directory is in Python path for all test modules
_src_path = Path(__file__).resolve().parent.parent / "src"
if str(_src_path) not in sys.path:
    sys.path.insert(0, str(_src_path))
