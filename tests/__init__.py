"""
Test suite for fincalc

Contains:
- tests/unit/          : Unit tests for engines, reactive core and calculators
"""
