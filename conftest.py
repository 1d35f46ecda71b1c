"""Pytest configuration for mrtune."""

# Prevent collection from source tree
collect_ignore = ["src"]


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies, fast)")
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests (documents in, predicted schedule or configuration out)"
    )
    config.addinivalue_line("markers", "slow: Slow tests (skip with -m 'not slow')")
