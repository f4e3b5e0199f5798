"""Test suite for the MSA dashboard.

This package contains unit tests covering dataset loading, view
derivation, chart specs, rendering and session state. To run the
tests, execute `pytest` from the project root.
"""
