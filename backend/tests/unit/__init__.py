"""
Unit Tests

Unit tests run in isolation without external dependencies.
LLM calls are mocked; storage tests use an in-memory SQLite database.
"""
