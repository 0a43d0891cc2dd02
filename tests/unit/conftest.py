"""
Unit Test Layer Configuration

Usage:
    pytest tests/unit -v                     # All unit tests
    pytest tests/unit/email_campaign -v      # One service
"""
import os
import sys

import pytest

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))


def pytest_collection_modifyitems(config, items):
    """Mark everything under tests/unit as a unit test"""
    for item in items:
        if "/tests/unit/" in item.path.as_posix():
            item.add_marker(pytest.mark.unit)
