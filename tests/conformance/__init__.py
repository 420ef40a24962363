"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the flight ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Split and even-redistribution budget conservation
2. rate_consistency.py - Budget/impression round trips at a fixed rate
3. locks.py - Fully locked flights never change
4. history.py - Bounded, boundary-safe undo/redo
5. partition.py - Monthly partition of a date range

These tests use hypothesis for property-based testing.
"""
