"""
Pytest configuration

Sets up the test environment
"""

import sys
from pathlib import Path


def pytest_configure(config):
    """
    Pytest configuration hook

    Puts the project root on the Python path before collection
    """
    project_root = str(Path(__file__).parent.parent.resolve())

    if project_root not in sys.path:
        sys.path.insert(0, project_root)


project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
