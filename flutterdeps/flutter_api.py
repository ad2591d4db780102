"""Access to Flutter release information, FVM, Docker registries and the framework sources."""

from __future__ import annotations

import json
import re
import subprocess
from collections.abc import Callable
from functools import cmp_to_key
from typing import Any

import requests

from . import source_scan
from .config import FLUTTER_API_URL, FLUTTER_RELEASES_URL, MAX_RELEASES
from .models import (
    Deprecation,
    FlutterRelease,
    FlutterReleasesResponse,
    _parse_rfc3339,
)

_TIMEOUT = 30
_SEMVER = re.compile(r"\d+\.\d+\.\d+", re.ASCII)
_UNSTABLE_TAG_MARKERS = ("beta", "dev", "pre", "rc", "alpha", "hotfix")
_RATE_LIMIT_MESSAGE = (
    "GitHub API rate limit exceeded. Please wait before retrying or "
    "authenticate with a GitHub token"
)
_DOCKER_HUB_TAG_URL = "https://hub.docker.com/v2/repositories/{image}/tags/{tag}"
_CIRRUSLABS_IMAGE = "ghcr.io/cirruslabs/flutter"
_CIRRUSLABS_PACKAGE_URL = (
    "https://api.github.com/users/cirruslabs/packages/container/flutter/versions"
)


class FlutterAPIError(Exception):
    """A Flutter release source answered with an error or with nothing usable."""


def is_stable_release(release: FlutterRelease, version: str) -> bool:
    """Tell whether a GitHub release is a plain stable X.Y.Z release."""
    if release.prerelease:
        return False
    tag = release.tag_name.lower()
    if any(marker in tag for marker in _UNSTABLE_TAG_MARKERS):
        return False
    return "-" not in version and _SEMVER.fullmatch(version) is not None


def _compare_newest_first(left: FlutterRelease, right: FlutterRelease) -> int:
    try:
        left_time = _parse_rfc3339(left.published_at)
        right_time = _parse_rfc3339(right.published_at)
    except ValueError:
        return 0
    if left_time > right_time:
        return -1
    if left_time < right_time:
        return 1
    return 0


def _error_message(response: Any) -> str:
    try:
        data = json.loads(response.content)
    except ValueError:
        return ""
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return ""


class FlutterAPIService:
    """Looks up Flutter releases and where a version is available."""

    def __init__(self, session: Any = None) -> None:
        self._session = requests.Session() if session is None else session

    def fetch_releases(self) -> list[FlutterRelease]:
        """Return the GitHub releases of Flutter, newest first."""
        response = self._session.get(
            FLUTTER_API_URL, params={"per_page": MAX_RELEASES}, timeout=_TIMEOUT
        )
        if response.status_code in (401, 403):
            message = _error_message(response)
            if "API rate limit exceeded" in message:
                raise FlutterAPIError(_RATE_LIMIT_MESSAGE)
            raise FlutterAPIError(f"GitHub API access forbidden (403): {message}")
        if response.status_code != 200:
            raise FlutterAPIError(f"GitHub API returned status {response.status_code}")

        data = json.loads(response.content)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ValueError("releases response is not a list")
        releases = [FlutterRelease.from_dict(item) for item in data]
        releases.sort(key=cmp_to_key(_compare_newest_first))
        return releases

    def fetch_official_releases(self) -> FlutterReleasesResponse:
        """Return the official Flutter releases index."""
        response = self._session.get(FLUTTER_RELEASES_URL, timeout=_TIMEOUT)
        if response.status_code != 200:
            raise FlutterAPIError(
                f"official Flutter releases API returned status {response.status_code}"
            )
        data = json.loads(response.content)
        if data is None:
            return FlutterReleasesResponse()
        if not isinstance(data, dict):
            raise ValueError("official releases response is not an object")
        return FlutterReleasesResponse.from_dict(data)

    def parse_version_from_release(self, release: FlutterRelease) -> str:
        return release.tag_name.removeprefix("v")

    def get_latest_stable_version(self) -> str:
        """Return the newest stable version, preferring the official index over GitHub."""
        try:
            official = self.fetch_official_releases()
        except (requests.RequestException, FlutterAPIError, ValueError, TypeError):
            official = None
        if official is not None:
            for release in official.releases:
                if release.channel == "stable":
                    return release.version

        releases = self.fetch_releases()
        for release in releases:
            version = self.parse_version_from_release(release)
            if is_stable_release(release, version):
                return version
        if releases:
            return self.parse_version_from_release(releases[0])
        raise FlutterAPIError("no releases found")

    def check_fvm_installed(self) -> bool:
        try:
            subprocess.run(["fvm", "--version"], capture_output=True, check=True)
        except (OSError, subprocess.CalledProcessError):
            return False
        return True

    def check_fvm_version_exists(self, version: str) -> bool:
        if not self.check_fvm_installed():
            return False
        try:
            result = subprocess.run(
                ["fvm", "list"], capture_output=True, text=True, check=True
            )
        except (OSError, subprocess.CalledProcessError):
            return False
        return version in result.stdout

    def check_docker_image_exists(self, image: str, tag: str) -> bool:
        """Tell whether an image tag exists on Docker Hub or GitHub Container Registry."""
        if image.startswith("ghcr.io/"):
            return self._ghcr_image_exists(image)
        return self._docker_hub_image_exists(image, tag)

    def _docker_hub_image_exists(self, image: str, tag: str) -> bool:
        url = _DOCKER_HUB_TAG_URL.format(image=image, tag=tag)
        try:
            response = self._session.get(url, timeout=_TIMEOUT)
        except requests.RequestException:
            return False
        return response.status_code == 200

    def _ghcr_image_exists(self, image: str) -> bool:
        # Only the package is checked; any tag of an existing package counts as present.
        if image != _CIRRUSLABS_IMAGE:
            return False
        try:
            response = self._session.get(_CIRRUSLABS_PACKAGE_URL, timeout=_TIMEOUT)
        except requests.RequestException:
            return False
        return response.status_code == 200

    def fetch_flutter_source_deprecations(self) -> list[Deprecation]:
        """Scan the Flutter framework sources for @Deprecated annotations."""
        return source_scan.fetch_source_deprecations(self._session)

    def fetch_flutter_source_deprecations_with_progress(
        self, progress_callback: Callable[[str], None], verbose: bool = False
    ) -> list[Deprecation]:
        """Scan the framework sources, reporting progress through the callback."""
        return source_scan.fetch_source_deprecations(
            self._session, progress_callback, verbose
        )

    def scan_file_for_deprecations(self, file_url: str) -> list[Deprecation]:
        return source_scan.scan_file_for_deprecations(file_url, self._session)

    def infer_replacement(self, api_name: str, description: str) -> str:
        return source_scan.infer_replacement(api_name, description)