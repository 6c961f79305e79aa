"""Engine components: classify → extract → dedup → enrich → export."""

from .dedup import KnownTitlesStore
from .fetcher import MetadataFetcher
from .parser import Classification, ReportLineParser
from .records import (
    AppVersion,
    BaseFields,
    DiscoveredProblemTitle,
    TitleFormat,
    TitleGroups,
    UndiscoveredProblemTitle,
)

__all__ = [
    "AppVersion",
    "BaseFields",
    "Classification",
    "DiscoveredProblemTitle",
    "KnownTitlesStore",
    "MetadataFetcher",
    "ReportLineParser",
    "TitleFormat",
    "TitleGroups",
    "UndiscoveredProblemTitle",
]
