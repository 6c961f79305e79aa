"""Shared fixtures for problem_titles tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterable

import pytest

from problem_titles.config import ConfigLocator, ConfigRepository, ExtractorConfig
from problem_titles.errors import MetadataLookupError

SAMPLE_LINE = (
    "applicationDescription: 3.6.4.4|deviceModel: iPad|language: English|"
    "operatingSystemVersion: 10.2.1|region: US|errorType: SpineMissing|"
    "sourceURL: https://host/%7BABCD1234%7DFmt410.epub"
)


class StubFetcher:
    """Metadata fetcher double recording every requested token."""

    def __init__(self, payloads: dict[str, dict] | None = None, fail: Iterable[str] = ()) -> None:
        self.payloads = payloads or {}
        self.fail = set(fail)
        self.calls: list[str] = []

    def fetch(self, reserve_id: str) -> dict:
        self.calls.append(reserve_id)
        if reserve_id in self.fail:
            raise MetadataLookupError(reserve_id, "HTTP 500")
        return self.payloads.get(reserve_id) or metadata_for(reserve_id)

    def close(self) -> None:
        return


def metadata_for(reserve_id: str, **overrides: Any) -> dict:
    payload = {
        "Title": f"Title {reserve_id}",
        "ReserveID": reserve_id,
        "TitleID": f"T-{reserve_id}",
        "Publisher": "Acme Press",
    }
    payload.update(overrides)
    return payload


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    monkeypatch.setenv("PROBLEM_TITLES_HOME", str(home))
    return home


@pytest.fixture
def sample_config(tmp_path: Path) -> Callable[..., ExtractorConfig]:
    def _builder(**overrides: Any) -> ExtractorConfig:
        base: dict[str, Any] = {
            "output_dir": tmp_path / "outputs",
            "archive_dir": tmp_path / "archive",
            "metadata_endpoint_url": "https://metadata.test/titles/{reserve_id}",
        }
        base.update(overrides)
        return ExtractorConfig(**base)

    return _builder


@pytest.fixture
def write_report(tmp_path: Path) -> Callable[..., Path]:
    def _writer(lines: Iterable[str], name: str = "report.csv") -> Path:
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _writer


@pytest.fixture
def stub_fetcher() -> StubFetcher:
    return StubFetcher()


@pytest.fixture
def temp_config_repository(isolated_home: Path) -> ConfigRepository:
    return ConfigRepository(ConfigLocator())


@pytest.fixture
def sample_line() -> str:
    return SAMPLE_LINE


@pytest.fixture
def make_fetcher() -> Callable[..., StubFetcher]:
    return StubFetcher


@pytest.fixture
def make_metadata() -> Callable[..., dict]:
    return metadata_for
