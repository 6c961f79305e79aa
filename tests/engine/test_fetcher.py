from __future__ import annotations

import httpx
import pytest

from problem_titles.engine.fetcher import MetadataFetcher
from problem_titles.errors import ConfigurationError, MetadataLookupError

ENDPOINT = "https://metadata.test/titles/{reserve_id}"


def _install(monkeypatch: pytest.MonkeyPatch, fetcher: MetadataFetcher, status: int = 200, **body) -> dict:
    captured: dict = {"calls": 0}

    def fake_request(**kwargs):
        captured["calls"] += 1
        captured.update(kwargs)
        request = httpx.Request(kwargs["method"], kwargs["url"])
        return httpx.Response(status, request=request, **body)

    monkeypatch.setattr(fetcher._client, "request", fake_request)
    return captured


def test_fetch_sends_json_get_to_templated_url(monkeypatch: pytest.MonkeyPatch, make_metadata) -> None:
    fetcher = MetadataFetcher(ENDPOINT)
    captured = _install(monkeypatch, fetcher, json=make_metadata("ABCD1234"))

    payload = fetcher.fetch("ABCD1234")
    fetcher.close()

    assert captured["calls"] == 1
    assert captured["method"] == "GET"
    assert captured["url"] == "https://metadata.test/titles/ABCD1234"
    assert captured["headers"] == {"Content-Type": "application/json"}
    assert payload["TitleID"] == "T-ABCD1234"


def test_fetch_missing_key_is_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    fetcher = MetadataFetcher(ENDPOINT)
    _install(monkeypatch, fetcher, json={"Title": "x", "ReserveID": "A", "TitleID": "1"})
    with pytest.raises(MetadataLookupError, match="Publisher"):
        fetcher.fetch("A")


@pytest.mark.parametrize(
    "status, body",
    [
        (500, {"text": "oops"}),
        (200, {"text": "not json"}),
        (200, {"json": ["a", "list"]}),
    ],
)
def test_fetch_failures_raise_lookup_error(monkeypatch: pytest.MonkeyPatch, status: int, body: dict) -> None:
    fetcher = MetadataFetcher(ENDPOINT)
    captured = _install(monkeypatch, fetcher, status=status, **body)
    with pytest.raises(MetadataLookupError) as excinfo:
        fetcher.fetch("A")
    assert excinfo.value.reserve_id == "A"
    assert captured["calls"] == 1


def test_fetch_network_error(monkeypatch: pytest.MonkeyPatch) -> None:
    fetcher = MetadataFetcher(ENDPOINT)

    def broken_request(**kwargs):
        raise httpx.ConnectError("connection refused", request=httpx.Request("GET", kwargs["url"]))

    monkeypatch.setattr(fetcher._client, "request", broken_request)
    with pytest.raises(MetadataLookupError, match="connection refused"):
        fetcher.fetch("A")


def test_fetch_without_endpoint() -> None:
    with MetadataFetcher(None) as fetcher:
        with pytest.raises(ConfigurationError):
            fetcher.fetch("A")
