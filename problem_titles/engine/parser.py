"""Report-line field extraction and title classification."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..config import ExtractorConfig
from .records import AppVersion, BaseFields, TitleFormat, UndiscoveredProblemTitle

FIELD_DELIMITER = "|"
LABEL_DELIMITER = ":"

APP_VERSION_LABEL = "applicationdescription"
DEVICE_MODEL_LABEL = "devicemodel"
LANGUAGE_LABEL = "language"
OS_VERSION_LABEL = "operatingsystemversion"
REGION_LABEL = "region"
ERROR_TYPE_LABEL = "errortype"
SOURCE_URL_LABEL = "sourceurl"

# %7B / %7D are the percent-encoded braces around the reservation token
_TOKEN_PATTERN = re.compile(r"%7B(?P<token>.*?)%7D")
_SIDE_LOADED_PATTERN = re.compile(r"Inbox/(?P<path>.*?\.epub)")
OPEN_FORMAT_MARKER = "openepubstore"


@dataclass(slots=True)
class Classification:
    """Outcome of inspecting a line's source path."""

    reserve_id: str | None = None
    format_type: TitleFormat | None = None
    data: str = ""

    @property
    def discoverable(self) -> bool:
        return self.reserve_id is not None


class ReportLineParser:
    """Turn ``label: value`` segments of a report line into typed fields."""

    def __init__(self, config: ExtractorConfig) -> None:
        self.config = config

    @staticmethod
    def fields(line: str) -> dict[str, str]:
        """Map lower-cased labels to trimmed values; the first occurrence wins."""

        mapping: dict[str, str] = {}
        for segment in line.split(FIELD_DELIMITER):
            label, sep, value = segment.partition(LABEL_DELIMITER)
            if not sep:
                continue
            key = label.strip().lower()
            if key and key not in mapping:
                mapping[key] = value.strip()
        return mapping

    def app_version_text(self, fields: dict[str, str]) -> str:
        return fields.get(APP_VERSION_LABEL, self.config.fallback_app_version)

    def base_fields(self, fields: dict[str, str]) -> BaseFields:
        """Build the shared fields; a malformed version raises MalformedFieldError."""

        return BaseFields(
            app_version=AppVersion.parse(self.app_version_text(fields), "applicationDescription"),
            os_version=AppVersion.parse(
                fields.get(OS_VERSION_LABEL, self.config.fallback_os_version),
                "operatingSystemVersion",
            ),
            device_model=fields.get(DEVICE_MODEL_LABEL, ""),
            language=fields.get(LANGUAGE_LABEL, ""),
            region=fields.get(REGION_LABEL, ""),
            error_type=fields.get(ERROR_TYPE_LABEL, ""),
        )

    @staticmethod
    def classify(line: str) -> Classification:
        match = _TOKEN_PATTERN.search(line)
        if match:
            format_type = (
                TitleFormat.OPEN if OPEN_FORMAT_MARKER in line.lower() else TitleFormat.ADOBE
            )
            return Classification(reserve_id=match.group("token"), format_type=format_type)
        source_url = ReportLineParser.fields(line).get(SOURCE_URL_LABEL)
        if source_url is None:
            return Classification(data="")
        side_loaded = _SIDE_LOADED_PATTERN.search(source_url)
        return Classification(data=side_loaded.group("path") if side_loaded else source_url)

    def undiscovered(self, line: str, classification: Classification | None = None) -> UndiscoveredProblemTitle:
        classification = classification or self.classify(line)
        return UndiscoveredProblemTitle(
            base=self.base_fields(self.fields(line)), data=classification.data
        )

    def is_ignored_version(self, fields: dict[str, str]) -> bool:
        """Return True when the line's app version starts with an ignored prefix.

        Prefixes are compared component-wise against the raw version text so an
        unparsable version never matches.
        """

        prefixes = self.config.versions_to_ignore
        if not prefixes:
            return False
        text = self.app_version_text(fields)
        try:
            version = AppVersion.parse(text)
        except ValueError:
            return False
        return any(version.matches_prefix(prefix) for prefix in prefixes)


__all__ = ["Classification", "ReportLineParser"]
