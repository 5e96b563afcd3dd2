"""Unit tests for quote providers.

Each provider is exercised against a mocked upstream: an httpx mock
transport for Polygon and a patched yfinance module for Yahoo.
"""
