"""
Tests for the pool construction CRM API.

Route tests run against an in-memory SQLite database; vendor clients are
replaced with mocks.
"""
