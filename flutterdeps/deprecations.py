"""Detecting deprecated Flutter APIs and keeping the deprecation cache current."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from .config import CACHE_DURATION, TIMESTAMP_DISPLAY_FORMAT
from .flutter_api import FlutterAPIError
from .models import (
    CacheServiceProtocol,
    Deprecation,
    FlutterAPIServiceProtocol,
    FlutterRelease,
    _parse_rfc3339,
)

log = logging.getLogger(__name__)

KNOWN_PATTERN_VERSION = "Multiple versions"
_RECENT_MONTHS = 18

_KNOWN_PATTERNS = (
    (
        r"Color\.\w+\.withOpacity\(([^)]+)\)",
        {
            "api": "Color.withOpacity",
            "replacement": "Color.withValues(alpha: $1)",
            "description": "withOpacity is deprecated, use withValues instead",
            "example": "Color.red.withOpacity(0.5) → Color.red.withValues(alpha: 0.5)",
        },
    ),
    (
        r"RaisedButton",
        {
            "api": "RaisedButton",
            "replacement": "ElevatedButton",
            "description": "RaisedButton is deprecated, use ElevatedButton instead",
            "example": "RaisedButton → ElevatedButton",
        },
    ),
    (
        r"FlatButton",
        {
            "api": "FlatButton",
            "replacement": "TextButton",
            "description": "FlatButton is deprecated, use TextButton instead",
            "example": "FlatButton → TextButton",
        },
    ),
    (
        r"OutlineButton",
        {
            "api": "OutlineButton",
            "replacement": "OutlinedButton",
            "description": "OutlineButton is deprecated, use OutlinedButton instead",
            "example": "OutlineButton → OutlinedButton",
        },
    ),
    (
        r"Scaffold\.of\(context\)\.showSnackBar",
        {
            "api": "Scaffold.of(context).showSnackBar",
            "replacement": "ScaffoldMessenger.of(context).showSnackBar",
            "description": "Direct showSnackBar on Scaffold is deprecated",
            "example": (
                "Scaffold.of(context).showSnackBar → "
                "ScaffoldMessenger.of(context).showSnackBar"
            ),
        },
    ),
    (
        r"FloatingActionButton\(child:",
        {
            "api": "FloatingActionButton(child:",
            "replacement": "FloatingActionButton with specific constructors",
            "description": (
                "Consider using FloatingActionButton.extended or other specific constructors"
            ),
        },
    ),
)

_COMPILED_KNOWN = {pattern: re.compile(pattern, re.ASCII) for pattern, _ in _KNOWN_PATTERNS}

_RELEASE_NOTE_PATTERNS = tuple(
    re.compile(pattern, re.IGNORECASE | re.ASCII)
    for pattern in (
        r"deprecated[:\s]+([A-Z][a-zA-Z0-9_.]*)\s*(?:in favor of|replaced by|use)\s+"
        r"([A-Z][a-zA-Z0-9_.]*)",
        r"([A-Z][a-zA-Z0-9_.]*)\s+(?:is\s+)?deprecated[,\s]*(?:use|replaced by)\s+"
        r"([A-Z][a-zA-Z0-9_.]*)",
        r"\*\*Breaking change\*\*[^*]*deprecated[^*]*([A-Z][a-zA-Z0-9_.]*)[^*]*"
        r"([A-Z][a-zA-Z0-9_.]*)?",
    )
)

ProgressCallback = Callable[[str], None]


def known_deprecation_patterns() -> dict[str, Deprecation]:
    """Return the built-in code patterns, each mapped to the deprecation it reveals."""
    return {pattern: Deprecation(**fields) for pattern, fields in _KNOWN_PATTERNS}


def _add_months(moment: datetime, months: int) -> datetime:
    """Shift by whole months, letting an overflowing day roll into the next month."""
    total = moment.year * 12 + (moment.month - 1) + months
    year, month_index = divmod(total, 12)
    first = moment.replace(year=year, month=month_index + 1, day=1)
    return first + timedelta(days=moment.day - 1)


def is_version_from_last_18_months(published_at: str, now: datetime | None = None) -> bool:
    """Tell whether an RFC 3339 timestamp lies within the last 18 months."""
    try:
        published = _parse_rfc3339(published_at)
    except ValueError:
        return False
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.astimezone()
    return published > _add_months(now, -_RECENT_MONTHS)


def _with_known_patterns(deprecations: Iterable[Deprecation]) -> list[Deprecation]:
    combined = list(deprecations)
    combined.extend(
        replace(dep, version=KNOWN_PATTERN_VERSION)
        for dep in known_deprecation_patterns().values()
    )
    return combined


class DeprecationService:
    """Finds deprecated APIs in code and refreshes the deprecation cache."""

    def __init__(
        self,
        cache_service: CacheServiceProtocol,
        api_service: FlutterAPIServiceProtocol,
    ) -> None:
        self._cache_service = cache_service
        self._api_service = api_service

    def extract_deprecations_from_release_notes(
        self, releases: Iterable[FlutterRelease]
    ) -> list[Deprecation]:
        """Collect deprecations mentioned in recent release notes, plus the known patterns."""
        deprecations: list[Deprecation] = []
        for release in releases:
            if not is_version_from_last_18_months(release.published_at):
                continue
            version = self._api_service.parse_version_from_release(release)
            for pattern in _RELEASE_NOTE_PATTERNS:
                for match in pattern.finditer(release.body):
                    api = match.group(1).strip()
                    replacement = (match.group(2) or "").strip()
                    if len(api) < 3 or ("." not in api and len(api) < 5):
                        continue
                    deprecations.append(
                        Deprecation(
                            api=api,
                            replacement=replacement,
                            version=version,
                            description=f"Deprecated in Flutter {version}",
                        )
                    )
        return _with_known_patterns(deprecations)

    def check_code_for_deprecations(self, code: str) -> list[Deprecation]:
        """Return the deprecations whose pattern or API name occurs in the code."""
        found = [
            deprecation
            for pattern, deprecation in known_deprecation_patterns().items()
            if _COMPILED_KNOWN[pattern].search(code)
        ]
        try:
            cache = self._cache_service.load()
        except OSError:
            return found
        found.extend(dep for dep in cache.deprecations if dep.api and dep.api in code)
        return found

    def _is_fresh(self, last_updated: datetime) -> bool:
        return datetime.now(timezone.utc) - last_updated < CACHE_DURATION

    def _fetch_source(self, fetch: Callable[[], list[Deprecation]]) -> list[Deprecation]:
        try:
            return list(fetch())
        except (OSError, ValueError, FlutterAPIError) as error:
            raise RuntimeError(f"failed to fetch source deprecations: {error}") from error

    def update_cache(self) -> None:
        """Rescan the Flutter sources unless the cache is younger than the cache duration."""
        cache = self._cache_service.load()
        if self._is_fresh(cache.last_updated):
            return
        source = self._fetch_source(self._api_service.fetch_flutter_source_deprecations)
        cache.deprecations = _with_known_patterns(source)
        cache.last_updated = datetime.now().astimezone()
        self._cache_service.save(cache)

    def update_cache_with_progress(
        self, progress_callback: ProgressCallback, verbose: bool = False
    ) -> None:
        """Like update_cache, reporting each step through the callback."""
        cache = self._cache_service.load()
        if self._is_fresh(cache.last_updated):
            progress_callback("Cache is up to date, skipping update")
            if verbose:
                log.info(
                    "Cache last updated: %s, duration threshold: %s",
                    cache.last_updated.strftime(TIMESTAMP_DISPLAY_FORMAT),
                    CACHE_DURATION,
                )
            return

        progress_callback("🖻 Scanning Flutter source code for @Deprecated annotations...")
        if verbose:
            log.info("Starting Flutter source code scan")

        source = self._fetch_source(
            lambda: self._api_service.fetch_flutter_source_deprecations_with_progress(
                progress_callback, verbose
            )
        )
        progress_callback(f"📊 Found {len(source)} deprecations from source code")
        if verbose:
            log.info("Found %d deprecations from source scan", len(source))

        progress_callback("📁 Adding known deprecation patterns...")
        combined = _with_known_patterns(source)

        progress_callback(f"💾 Saving {len(combined)} total deprecations to cache...")
        if verbose:
            log.info("Saving %d deprecations to cache", len(combined))

        cache.deprecations = combined
        cache.last_updated = datetime.now().astimezone()
        self._cache_service.save(cache)