import os

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run tests marked as integration (requires a PostgreSQL TEST_DATABASE_URL).",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "integration: tests that need a real PostgreSQL server (statement timeouts, dialect SQL)"
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-integration") and os.environ.get("TEST_DATABASE_URL"):
        return

    skip_integration = pytest.mark.skip(
        reason="integration test (use --run-integration with TEST_DATABASE_URL set)"
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)
