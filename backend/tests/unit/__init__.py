"""Unit tests for the Stock Deck API.

This package contains unit tests for entitlements, configuration,
dependency wiring, quote providers and the service helpers.
"""
