"""Pydantic models describing extractor configuration."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

_VERSION_PATTERN = re.compile(r"^\d+(\.\d+){1,3}$")
_PREFIX_PATTERN = re.compile(r"^\d+(\.\d+){0,3}$")

DEFAULT_TITLE_URL = "https://qaintegration.overdrive.com/media/{title_id}"
DEFAULT_MARKETPLACE_URL = (
    "https://marketplace.overdrive.com/Marketplace/OneCopyOneUserAndMeteredAccess/"
    "TitleDetails/{reserve_id}"
)
DEFAULT_LIBRARY_URL = "http://mydigitallibrary.lib.overdrive.com/ContentDetails.htm?id={reserve_id}"


def _require_placeholder(value: str, placeholder: str, field_name: str) -> str:
    if "{" + placeholder + "}" not in value:
        raise ValueError(f"{field_name} must contain the {{{placeholder}}} placeholder")
    try:
        value.format(**{placeholder: "x"})
    except (KeyError, IndexError, ValueError) as exc:
        raise ValueError(f"{field_name} may only use the {{{placeholder}}} placeholder") from exc
    return value



class ExtractorConfig(BaseModel):
    """Settings consumed by a single extraction run."""

    output_dir: Path = Field(default=Path("data/outputs"))
    archive_dir: Path | None = Field(default=Path("data/archive"))
    fallback_app_version: str = "3.6.4.4"
    fallback_os_version: str = "9.3.1"
    versions_to_ignore: list[str] = Field(default_factory=list)
    metadata_endpoint_url: str | None = None
    title_url_template: str = DEFAULT_TITLE_URL
    marketplace_url_template: str = DEFAULT_MARKETPLACE_URL
    library_url_template: str = DEFAULT_LIBRARY_URL
    known_titles_filename: str = "known.txt"

    @field_validator("output_dir", mode="before")
    @classmethod
    def _coerce_output_dir(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("archive_dir", mode="before")
    @classmethod
    def _coerce_archive_dir(cls, value: Any) -> Path | None:
        if value in (None, ""):
            return None
        return Path(value)

    @field_validator("fallback_app_version", "fallback_os_version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        value = value.strip()
        if not _VERSION_PATTERN.match(value):
            raise ValueError(f"Invalid version string: {value!r}")
        return value

    @field_validator("versions_to_ignore", mode="before")
    @classmethod
    def _coerce_ignore_list(cls, value: Any) -> list[str]:
        if value in (None, ""):
            return []
        if isinstance(value, str):
            value = value.split("|")
        if not isinstance(value, (list, tuple)):
            raise ValueError("versions_to_ignore expects a list or a '|' joined string")
        prefixes = [str(item).strip().rstrip(".") for item in value if str(item).strip()]
        for prefix in prefixes:
            if not _PREFIX_PATTERN.match(prefix):
                raise ValueError(f"Invalid version prefix: {prefix!r}")
        return prefixes

    @field_validator("metadata_endpoint_url")
    @classmethod
    def _check_endpoint(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return _require_placeholder(value.strip(), "reserve_id", "metadata_endpoint_url")

    @model_validator(mode="after")
    def _check_templates(self) -> "ExtractorConfig":
        _require_placeholder(self.title_url_template, "title_id", "title_url_template")
        _require_placeholder(self.marketplace_url_template, "reserve_id", "marketplace_url_template")
        _require_placeholder(self.library_url_template, "reserve_id", "library_url_template")
        if not self.known_titles_filename.strip():
            raise ValueError("known_titles_filename cannot be empty")
        return self

    def resolve_dir(self, path: Path, base_dir: Path) -> Path:
        """Return ``path`` resolved against the project root when relative."""

        if not path.is_absolute():
            return (base_dir / path).resolve()
        return path

    def known_titles_path(self, base_dir: Path) -> Path:
        return self.resolve_dir(self.output_dir, base_dir) / self.known_titles_filename


__all__ = [
    "DEFAULT_LIBRARY_URL",
    "DEFAULT_MARKETPLACE_URL",
    "DEFAULT_TITLE_URL",
    "ExtractorConfig",
]
