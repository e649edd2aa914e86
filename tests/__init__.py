"""
DeployChain Test Suite
======================

Test organization mirrors the source code structure:
    tests/
    ├── test_core/          → Tests for deploychain.core (config, models, state, errors)
    ├── test_orchestration/ → Tests for deploychain.orchestration (pipeline, reconciler, ...)
    ├── test_infrastructure/→ Tests for deploychain.infrastructure (record store)
    ├── test_integrations/  → Tests for deploychain.integrations (executor, publisher)
    ├── test_integration/   → End-to-end integration tests
    ├── test_facade.py      → Tests for the DeployChain facade
    └── conftest.py         → Shared pytest fixtures

Running Tests:
    pytest                              # Run all tests
    pytest tests/test_core/             # Run only core tests
    pytest tests/test_integration/      # Run only end-to-end tests
"""
