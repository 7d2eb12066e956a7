"""
Test suite for ratelock

Contains:
- tests/unit/          : Unit tests for ledger, bridge, gates and contracts
"""
