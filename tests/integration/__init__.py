"""Integration test package.

These tests exercise the end-to-end behaviour of the MSA dashboard
through the web API and the command line, over a small sample table
written to a temporary directory.
"""
