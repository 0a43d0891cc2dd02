"""
Component Test Layer Configuration

Services run against in-memory mocks; no database or network.

Usage:
    pytest tests/component -v
    pytest tests/component/email_campaign -v
"""
import os
import sys

import pytest

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))


def pytest_collection_modifyitems(config, items):
    """Mark everything under tests/component as a component test"""
    for item in items:
        if "/tests/component/" in item.path.as_posix():
            item.add_marker(pytest.mark.component)
