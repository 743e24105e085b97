"""Pytest integration: fast-mode option and the finalization marker."""

from __future__ import annotations

import pytest

from .config import HarnessConfig


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--fast-mode",
        action="store_true",
        default=False,
        help="Skip tests that need withdrawal finalization on L1",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "requires_finalization: test needs withdrawal finalization; skipped in fast mode",
    )


def fast_mode_enabled(config: pytest.Config) -> bool:
    return bool(config.getoption("--fast-mode")) or HarnessConfig.from_env().fast_mode


def pytest_runtest_setup(item: pytest.Item) -> None:
    if item.get_closest_marker("requires_finalization") and fast_mode_enabled(item.config):
        pytest.skip("fast mode: withdrawal finalization disabled")


@pytest.fixture
def harness_config(request: pytest.FixtureRequest) -> HarnessConfig:
    config = HarnessConfig.from_env()
    if request.config.getoption("--fast-mode"):
        config.fast_mode = True
    return config
