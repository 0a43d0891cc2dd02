"""
Root conftest.py - Global fixtures and configuration for all test layers.

Test Layers:
    - component/: Component tests (mocked dependencies)
    - unit/     : Unit tests (pure functions, no I/O)
    - contracts/: Shared data contracts and test data factories
"""
import os
import sys

import pytest

# Set testing environment BEFORE any service imports
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("ENVIRONMENT", "testing")

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "component: Component tests")
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "requires_db: Needs a live PostgreSQL")


def pytest_collection_modifyitems(config, items):
    """Skip tests whose infrastructure is not available"""
    skip_db = pytest.mark.skip(reason="PostgreSQL not available")
    for item in items:
        if "requires_db" in item.keywords and os.getenv("SKIP_DB_TESTS"):
            item.add_marker(skip_db)
