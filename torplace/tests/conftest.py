"""Shared test fixtures."""

from datetime import UTC, date, datetime
from pathlib import Path

import pytest
import yaml

from torplace.config.schema import ArchiveConfig, ServiceConfig
from torplace.models.warning import DateInterval, RawWarning

TEST_BASE_URL = "https://test-iem.example.com"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def tor_day_text(fixtures_dir: Path) -> str:
    """Archive day file with one product of each kind (see fixture)."""
    return (fixtures_dir / "tor_20220501.txt").read_text()


@pytest.fixture
def single_tor_text(fixtures_dir: Path) -> str:
    return (fixtures_dir / "tor_single_20220501.txt").read_text()


@pytest.fixture
def may_first() -> DateInterval:
    return DateInterval(start=date(2022, 5, 1), end=date(2022, 5, 1))


@pytest.fixture
def test_config() -> ServiceConfig:
    """Config pointing at the mocked archive with instant retries."""
    return ServiceConfig(
        archive=ArchiveConfig(base_url=TEST_BASE_URL, retry_delay=0.0),
    )


@pytest.fixture
def config_yaml_path(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    data = {
        "archive": {"base_url": TEST_BASE_URL, "retry_delay": 0.0},
        "placefile": {"title": "Test TORs"},
    }
    path = tmp_path / "test_config.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


@pytest.fixture
def make_warning():
    """Factory for RawWarning with sensible defaults."""

    def _make(
        issued: str = "2022-05-01T20:13:00",
        expires: str = "2022-05-01T21:00:00",
        polygon=((35.1, -97.5), (35.2, -97.4), (35.0, -97.3)),
        tags=(),
        office: str | None = None,
        event_id: int | None = None,
    ) -> RawWarning:
        return RawWarning(
            issued_at=datetime.fromisoformat(issued).replace(tzinfo=UTC),
            expires_at=datetime.fromisoformat(expires).replace(tzinfo=UTC),
            polygon=tuple(polygon),
            tags=frozenset(tags),
            office=office,
            event_id=event_id,
        )

    return _make
