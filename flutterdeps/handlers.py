"""Tool handlers that turn service results into text for the client."""

from __future__ import annotations

from collections.abc import Iterable

from .config import TIMESTAMP_DISPLAY_FORMAT
from .models import (
    CacheServiceProtocol,
    Deprecation,
    DeprecationServiceProtocol,
    VersionInfoServiceProtocol,
)


def _format_deprecations(deprecations: Iterable[Deprecation]) -> str:
    entries = []
    for number, dep in enumerate(deprecations, start=1):
        lines = [f"{number}. **{dep.api}**"]
        if dep.replacement:
            lines.append(f"   - Replacement: {dep.replacement}")
        lines.append(f"   - Description: {dep.description}")
        if dep.example:
            lines.append(f"   - Example: {dep.example}")
        if dep.version:
            lines.append(f"   - Since version: {dep.version}")
        entries.append("\n".join(lines) + "\n\n")
    return "".join(entries)


class MCPHandlers:
    """The three tools offered by the server, each returning the text to show."""

    def __init__(
        self,
        deprecation_service: DeprecationServiceProtocol | None,
        version_info_service: VersionInfoServiceProtocol | None,
        cache_service: CacheServiceProtocol | None,
    ) -> None:
        self.deprecation_service = deprecation_service
        self.version_info_service = version_info_service
        self.cache_service = cache_service

    def check_flutter_deprecations(self, code: str) -> str:
        """Report the deprecated APIs found in a code snippet."""
        deprecations = self.deprecation_service.check_code_for_deprecations(code)
        if not deprecations:
            return "No deprecated APIs found in the provided code."
        return "Found deprecated APIs:\n\n" + _format_deprecations(deprecations)

    def list_flutter_deprecations(self) -> str:
        """List every cached deprecation, sorted by API name."""
        try:
            cache = self.cache_service.load()
        except Exception as error:  # reported to the client rather than raised
            return f"Error loading deprecations: {error}"
        if not cache.deprecations:
            return "No deprecations found in cache. Try updating the cache first."
        header = (
            "Flutter Deprecations (Last updated: "
            f"{cache.last_updated.strftime(TIMESTAMP_DISPLAY_FORMAT)})\n\n"
        )
        ordered = sorted(cache.deprecations, key=lambda dep: dep.api)
        return header + _format_deprecations(ordered)

    def check_flutter_version_info(self) -> str:
        """Report the latest Flutter version and where it is available."""
        try:
            info = self.version_info_service.get_flutter_version_info()
        except Exception as error:  # reported to the client rather than raised
            return f"Error getting Flutter version info: {error}"
        return info.details