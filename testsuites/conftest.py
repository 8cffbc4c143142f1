"""
================================================================================
Root Pytest Configuration
================================================================================

This module provides the root pytest configuration for the entire test suite.
It registers common markers and tags collected items by directory.

================================================================================
"""

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests driving a real browser"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "unit: Framework unit tests (no browser)"
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify collected test items.

    Adds the directory-based markers so ``-m unit`` / ``-m ui`` select suites.
    """
    for item in items:
        parts = item.path.parts

        if "ui_testing" in parts:
            item.add_marker(pytest.mark.ui)

        if "unit" in parts:
            item.add_marker(pytest.mark.unit)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    lines = [
        "",
        "=" * 60,
        "UI Automation Framework",
        "=" * 60,
    ]

    plugin = config.pluginmanager.get_plugin("uiframework")
    if plugin is not None:
        run_config = plugin.run_config
        lines.append(
            f"browser={run_config.engine_kind.value} headless={run_config.headless} "
            f"base_url={run_config.base_url or '-'} retries={run_config.max_retries}"
        )

    lines.append("")
    return lines
