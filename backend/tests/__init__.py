"""
LearnLoop Test Suite

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures and configuration
    ├── unit/                # Unit tests (mocked sessions and LLM calls)
    │   ├── test_streak_tracking.py
    │   ├── test_learning_path.py
    │   ├── test_tutor_service.py
    │   ├── test_routers.py  # HTTP surface with overridden services
    │   └── ...
    └── integration/         # Integration tests (require PostgreSQL)
        └── test_learning_api.py

Running Tests:
    # Run unit tests (integration tests are deselected by default)
    pytest

    # Run only integration tests (requires a test database)
    pytest -m integration

    # Run with coverage
    pytest --cov=learnloop --cov-report=html
"""
