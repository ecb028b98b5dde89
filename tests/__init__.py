"""
Test suite for fund-allocation-engine

Contains:
- tests/unit/          : Unit tests for individual modules and allocation scenarios
"""
