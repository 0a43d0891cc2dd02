"""
Email Campaign Service Contract Module

This module contains:
- data_contract.py: re-exported service models, test data factory and builders
"""
