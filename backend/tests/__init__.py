"""
NeuroLex Test Suite

Test Structure:
    tests/
    ├── conftest.py     # Shared fixtures (in-memory SQLite, mocks, sample items)
    └── unit/           # Unit tests (no network, no external services)

Running Tests:
    # Run all tests
    pytest backend/tests -v
"""
