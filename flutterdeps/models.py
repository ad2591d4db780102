"""Data types for releases, deprecations, the cache and version information."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})",
    re.ASCII,
)


def _parse_rfc3339(text: str) -> datetime:
    match = _RFC3339.fullmatch(text.strip())
    if match is None:
        raise ValueError(f"invalid RFC 3339 timestamp: {text!r}")
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    if offset in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second),
        microsecond, tzinfo=tz,
    )


def _format_rfc3339(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    text = moment.isoformat()
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


def _flag(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise TypeError(f"field {key!r} must be a boolean, got {type(value).__name__}")
    return value


def _items(data: Mapping[str, Any], key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"field {key!r} must be a list, got {type(value).__name__}")
    return value


@dataclass
class FlutterRelease:
    """A release as listed by the GitHub releases API."""

    name: str = ""
    tag_name: str = ""
    published_at: str = ""
    body: str = ""
    prerelease: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FlutterRelease:
        return cls(
            name=_text(data, "name"),
            tag_name=_text(data, "tag_name"),
            published_at=_text(data, "published_at"),
            body=_text(data, "body"),
            prerelease=_flag(data, "prerelease"),
        )


@dataclass
class FlutterOfficialRelease:
    """A release entry from the official Flutter releases index."""

    hash: str = ""
    channel: str = ""
    version: str = ""
    dart_sdk_version: str = ""
    dart_sdk_arch: str = ""
    release_date: str = ""
    archive: str = ""
    sha256: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FlutterOfficialRelease:
        return cls(
            hash=_text(data, "hash"),
            channel=_text(data, "channel"),
            version=_text(data, "version"),
            dart_sdk_version=_text(data, "dart_sdk_version"),
            dart_sdk_arch=_text(data, "dart_sdk_arch"),
            release_date=_text(data, "release_date"),
            archive=_text(data, "archive"),
            sha256=_text(data, "sha256"),
        )


@dataclass
class FlutterReleasesResponse:
    """The whole official releases index: base URL, current hashes and releases."""

    base_url: str = ""
    current_release: dict[str, str] = field(
        default_factory=lambda: {"beta": "", "dev": "", "stable": ""}
    )
    releases: list[FlutterOfficialRelease] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FlutterReleasesResponse:
        current = data.get("current_release") or {}
        if not isinstance(current, Mapping):
            raise TypeError("field 'current_release' must be an object")
        return cls(
            base_url=_text(data, "base_url"),
            current_release={
                channel: _text(current, channel) for channel in ("beta", "dev", "stable")
            },
            releases=[
                FlutterOfficialRelease.from_dict(item) for item in _items(data, "releases")
            ],
        )


@dataclass
class Deprecation:
    """A deprecated Flutter API and what to use instead."""

    api: str = ""
    replacement: str = ""
    version: str = ""
    description: str = ""
    example: str = ""

    def to_dict(self) -> dict[str, str]:
        data = {
            "api": self.api,
            "replacement": self.replacement,
            "version": self.version,
            "description": self.description,
        }
        if self.example:
            data["example"] = self.example
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Deprecation:
        return cls(
            api=_text(data, "api"),
            replacement=_text(data, "replacement"),
            version=_text(data, "version"),
            description=_text(data, "description"),
            example=_text(data, "example"),
        )


@dataclass
class DeprecationCache:
    """The cached list of deprecations and when it was last refreshed."""

    last_updated: datetime = ZERO_TIME
    deprecations: list[Deprecation] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_updated": _format_rfc3339(self.last_updated),
            "deprecations": [dep.to_dict() for dep in self.deprecations],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DeprecationCache:
        stamp = data.get("last_updated")
        if stamp is None:
            last_updated = ZERO_TIME
        elif isinstance(stamp, str):
            last_updated = _parse_rfc3339(stamp)
        else:
            raise TypeError("field 'last_updated' must be a string")
        return cls(
            last_updated=last_updated,
            deprecations=[Deprecation.from_dict(item) for item in _items(data, "deprecations")],
        )


@dataclass
class DockerImages:
    """Whether the Flutter Docker images exist for a version."""

    instrumentisto: bool = False
    cirruslabs: bool = False


@dataclass
class FlutterVersionInfo:
    """The latest Flutter version and where it can be obtained."""

    latest_version: str = ""
    fvm_installed: bool = False
    fvm_version_exists: bool = False
    docker_images: DockerImages = field(default_factory=DockerImages)
    details: str = ""


@dataclass
class CheckCodeArgs:
    """Input of the code-checking tool."""

    code: str = ""


class CacheServiceProtocol(Protocol):
    def load(self) -> DeprecationCache: ...

    def save(self, cache: DeprecationCache) -> None: ...


class FlutterAPIServiceProtocol(Protocol):
    def fetch_releases(self) -> list[FlutterRelease]: ...

    def fetch_official_releases(self) -> FlutterReleasesResponse: ...

    def parse_version_from_release(self, release: FlutterRelease) -> str: ...

    def get_latest_stable_version(self) -> str: ...

    def check_fvm_installed(self) -> bool: ...

    def check_fvm_version_exists(self, version: str) -> bool: ...

    def check_docker_image_exists(self, image: str, tag: str) -> bool: ...

    def fetch_flutter_source_deprecations(self) -> list[Deprecation]: ...

    def fetch_flutter_source_deprecations_with_progress(
        self, progress_callback: Callable[[str], None], verbose: bool
    ) -> list[Deprecation]: ...


class DeprecationServiceProtocol(Protocol):
    def check_code_for_deprecations(self, code: str) -> list[Deprecation]: ...

    def update_cache(self) -> None: ...

    def extract_deprecations_from_release_notes(
        self, releases: list[FlutterRelease]
    ) -> list[Deprecation]: ...


class VersionInfoServiceProtocol(Protocol):
    def get_flutter_version_info(self) -> FlutterVersionInfo: ...


class FlutterVersionServiceProtocol(Protocol):
    def get_installed_flutter_version(self) -> str: ...

    def is_flutter_installed(self) -> bool: ...

    def get_flutter_channel(self) -> str: ...