"""Test Fixtures Package

Provides reusable test fixtures for all test modules.

Fixtures:
- api_fixtures: in-memory config store, token factory, mock HTTP transport
"""
