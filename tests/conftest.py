"""Pytest configuration for the test suite."""

import sys
from pathlib import Path

# Add the repository root to the path so absolute package imports work
# (tests/ sits next to the packages it tests)
repo_dir = Path(__file__).parent.parent
if str(repo_dir) not in sys.path:
    sys.path.insert(0, str(repo_dir))
