"""Shared pytest configuration and fixtures."""

from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import patch

import pytest

from src.config import Settings, get_settings
from src.historian.frame import Field, Frame, Timestamp


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run e2e tests that hit real services (requires .env with a reachable HISTORIAN_URL)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-e2e"):
        return
    skip_e2e = pytest.mark.skip(reason="Need --run-e2e flag to run")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


@pytest.fixture(autouse=True)
def _no_dotenv(request: pytest.FixtureRequest) -> Generator[None]:
    """Block .env loading so a developer's local .env never leaks into tests."""
    if "e2e" in request.keywords:
        yield
        return

    get_settings.cache_clear()
    original = Settings.model_config.get("env_file")
    Settings.model_config["env_file"] = None

    try:
        yield
    finally:
        Settings.model_config["env_file"] = original
        get_settings.cache_clear()


@pytest.fixture
def mock_settings() -> Generator[Any]:
    """Provide fake settings so tests don't depend on the environment.

    Patches get_settings at every import site so cached references are overridden.
    """
    fake_settings = type(
        "FakeSettings",
        (),
        {
            "historian_url": "http://historian.test:3000",
            "historian_token": "glsa_test_fake",
            "historian_query_timeout_seconds": 5.0,
            "org_id_header": "X-Grafana-Org-Id",
            "user_id_header": "X-Grafana-User-Id",
            "login_header": "X-Grafana-Login",
            "log_level": "INFO",
        },
    )()
    with (
        patch("src.config.get_settings", return_value=fake_settings),
        patch("src.api.main.get_settings", return_value=fake_settings),
        patch("src.historian.engine.get_settings", return_value=fake_settings),
        patch("src.historian.handlers.get_settings", return_value=fake_settings),
    ):
        yield fake_settings


@pytest.fixture
def t0() -> datetime:
    return datetime(2024, 6, 15, 14, 0, 0, 123456, tzinfo=UTC)


@pytest.fixture
def history_frame(t0: datetime) -> Frame:
    """A well-formed two-row historian frame."""
    return Frame(
        name="test",
        fields=[
            Field(
                name="Time",
                values=[Timestamp.from_datetime(t0), Timestamp.from_datetime(t0 + timedelta(seconds=1))],
                type="time",
            ),
            Field(name="Line", values=["alert fired", "alert resolved"], type="string"),
        ],
    )
