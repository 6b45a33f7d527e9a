"""
RetailSafe Test Suite
=====================

Test organization:
- tests/unit/          - Unit tests for shared configuration and logging
- tests/services/      - Service tests (engine, loaders, HTTP endpoints)

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
    pytest --cov=services          # With coverage
"""
