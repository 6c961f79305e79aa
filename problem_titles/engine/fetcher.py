"""Remote title metadata lookup over HTTP."""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog

from ..errors import ConfigurationError, MetadataLookupError
from .records import REQUIRED_METADATA_KEYS


class MetadataFetcher:
    """Fetch title metadata for a reservation token, one request per call.

    No retries and no timeout override: a failed request is reported to the
    caller as :class:`MetadataLookupError`.
    """

    def __init__(
        self,
        endpoint_template: str | None,
        logger: structlog.BoundLogger | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.endpoint_template = endpoint_template
        self.logger = logger or structlog.get_logger("problem_titles.fetcher")
        self._owns_client = client is None
        self._client = client or httpx.Client(follow_redirects=True)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "MetadataFetcher":
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()

    def url_for(self, reserve_id: str) -> str:
        if not self.endpoint_template:
            raise ConfigurationError("metadata_endpoint_url is not configured")
        return self.endpoint_template.format(reserve_id=reserve_id)

    def fetch(self, reserve_id: str) -> dict[str, Any]:
        url = self.url_for(reserve_id)
        try:
            response = self._client.request(
                method="GET",
                url=url,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self.logger.error(
                "metadata_status_error",
                reserve_id=reserve_id,
                url=url,
                status=exc.response.status_code,
            )
            raise MetadataLookupError(reserve_id, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            self.logger.error("metadata_request_error", reserve_id=reserve_id, url=url, error=str(exc))
            raise MetadataLookupError(reserve_id, str(exc) or exc.__class__.__name__) from exc

        try:
            payload = json.loads(response.text)
        except json.JSONDecodeError as exc:
            raise MetadataLookupError(reserve_id, f"malformed JSON: {exc.msg}") from exc
        if not isinstance(payload, dict):
            raise MetadataLookupError(reserve_id, "response is not a JSON object")
        missing = [key for key in REQUIRED_METADATA_KEYS if payload.get(key) is None]
        if missing:
            raise MetadataLookupError(reserve_id, f"missing required keys: {', '.join(missing)}")
        self.logger.debug("metadata_fetched", reserve_id=reserve_id, title_id=payload.get("TitleID"))
        return payload


__all__ = ["MetadataFetcher"]
