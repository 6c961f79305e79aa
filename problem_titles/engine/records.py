"""Typed records for problem titles extracted from crash reports."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering
from typing import Any, Mapping

from ..errors import MalformedFieldError, MetadataLookupError

REQUIRED_METADATA_KEYS = ("Title", "ReserveID", "TitleID", "Publisher")
FIELD_SEPARATOR = " | "

_VERSION_PATTERN = re.compile(r"^\d+(\.\d+){1,3}$")
_REPORT_LINE_PATTERN = re.compile(r"^-\s*\[(?P<title>.*?)\|(?P<title_url>[^|\]]*)\]\s\|\s(?P<rest>.*)$")
_LINK_PATTERN = re.compile(r"^\[[^\]|]+\|[^\]|]*\]$")


def _is_link(segment: str) -> bool:
    return bool(_LINK_PATTERN.match(segment))


@total_ordering
@dataclass(frozen=True, slots=True)
class AppVersion:
    """Numeric version with two to four components (major.minor[.build[.revision]])."""

    components: tuple[int, ...]

    @classmethod
    def parse(cls, value: str, label: str = "version") -> "AppVersion":
        text = (value or "").strip()
        if not _VERSION_PATTERN.match(text):
            raise MalformedFieldError(label, value)
        return cls(tuple(int(part) for part in text.split(".")))

    def matches_prefix(self, prefix: str) -> bool:
        """Return True when the leading components equal those of ``prefix``.

        ``3.6`` matches ``3.6.4.4`` but not ``3.60.1``.
        """

        parts = [part for part in prefix.strip().split(".") if part]
        if not parts or not all(part.isdigit() for part in parts):
            return False
        wanted = tuple(int(part) for part in parts)
        return self.components[: len(wanted)] == wanted

    def _padded(self) -> tuple[int, ...]:
        return self.components + (0,) * (4 - len(self.components))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, AppVersion):
            return NotImplemented
        return self._padded() < other._padded()

    def __str__(self) -> str:
        return ".".join(str(part) for part in self.components)


class TitleFormat(str, Enum):
    """Format categories for discoverable titles."""

    ADOBE = "adobe"
    OPEN = "open"


@dataclass(slots=True)
class BaseFields:
    """Fields shared by every problem title."""

    app_version: AppVersion
    os_version: AppVersion
    device_model: str = ""
    language: str = ""
    region: str = ""
    error_type: str = ""

    def render(self) -> str:
        return FIELD_SEPARATOR.join(
            [str(self.app_version), str(self.os_version), self.language, self.region, self.error_type]
        )


@dataclass(slots=True)
class DiscoveredProblemTitle:
    """Title loaded through the application and identified by a reservation token."""

    base: BaseFields
    title: str
    title_id: str
    reserve_id: str
    format_type: TitleFormat
    publisher: str

    @classmethod
    def from_metadata(
        cls,
        payload: Mapping[str, Any],
        base: BaseFields,
        format_type: TitleFormat,
        reserve_id: str | None = None,
    ) -> "DiscoveredProblemTitle":
        """Build a record from the metadata service's JSON object.

        ``reserve_id`` is the token from the source line; it is the identity key
        and wins over the ``ReserveID`` echoed by the service.
        """

        missing = [key for key in REQUIRED_METADATA_KEYS if payload.get(key) is None]
        token = reserve_id or str(payload.get("ReserveID") or "")
        if missing:
            raise MetadataLookupError(token, f"missing required keys: {', '.join(missing)}")
        return cls(
            base=base,
            title=str(payload["Title"]),
            title_id=str(payload["TitleID"]),
            reserve_id=token,
            format_type=TitleFormat(format_type),
            publisher=str(payload["Publisher"]),
        )

    @classmethod
    def from_report_line(cls, line: str) -> "DiscoveredProblemTitle":
        """Rehydrate a record from a rendered report line.

        Links and device model are not part of the rendered line and come back
        empty.
        """

        match = _REPORT_LINE_PATTERN.match(line.strip())
        if not match:
            raise ValueError(f"Not a discovered title line: {line!r}")
        parts = [part.strip() for part in match.group("rest").split(FIELD_SEPARATOR)]
        links = 0
        while parts and links < 2 and _is_link(parts[-1]):
            parts.pop()
            links += 1
        if links:
            # Base fields sit right before the links, so the publisher may contain the separator
            if len(parts) < 9:
                raise ValueError(f"Discovered title line has too few fields: {line!r}")
            reserve_id, title_id, format_type = parts[:3]
            publisher = FIELD_SEPARATOR.join(parts[3:-5])
            app_version, os_version, language, region, error_type = parts[-5:]
        else:
            if len(parts) < 6:
                raise ValueError(f"Discovered title line has too few fields: {line!r}")
            parts += [""] * max(0, 9 - len(parts))
            reserve_id, title_id, format_type, publisher, app_version, os_version, language, region, error_type = (
                parts[:9]
            )
        base = BaseFields(
            app_version=AppVersion.parse(app_version, "applicationDescription"),
            os_version=AppVersion.parse(os_version, "operatingSystemVersion"),
            language=language,
            region=region,
            error_type=error_type,
        )
        return cls(
            base=base,
            title=match.group("title"),
            title_id=title_id,
            reserve_id=reserve_id,
            format_type=TitleFormat(format_type),
            publisher=publisher,
        )


@dataclass(slots=True)
class UndiscoveredProblemTitle:
    """Side-loaded title known only by a path fragment."""

    base: BaseFields
    data: str = ""


@dataclass(slots=True)
class TitleGroups:
    """Records accumulated during a single run."""

    adobe: dict[str, DiscoveredProblemTitle] = field(default_factory=dict)
    open: dict[str, DiscoveredProblemTitle] = field(default_factory=dict)
    side_loaded: list[UndiscoveredProblemTitle] = field(default_factory=list)

    def has_token(self, reserve_id: str) -> bool:
        return reserve_id in self.adobe or reserve_id in self.open

    def add_discovered(self, record: DiscoveredProblemTitle) -> bool:
        """Insert ``record`` unless its token is already grouped; first wins."""

        if self.has_token(record.reserve_id):
            return False
        target = self.open if record.format_type is TitleFormat.OPEN else self.adobe
        target[record.reserve_id] = record
        return True

    def discovered_tokens(self) -> list[str]:
        return [*self.adobe.keys(), *self.open.keys()]

    def is_empty(self) -> bool:
        return not (self.adobe or self.open or self.side_loaded)


__all__ = [
    "AppVersion",
    "BaseFields",
    "DiscoveredProblemTitle",
    "FIELD_SEPARATOR",
    "REQUIRED_METADATA_KEYS",
    "TitleFormat",
    "TitleGroups",
    "UndiscoveredProblemTitle",
]
