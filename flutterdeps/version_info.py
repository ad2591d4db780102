"""Gathering the latest Flutter version and where it can be installed from."""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from datetime import datetime

from .config import TIMESTAMP_DISPLAY_FORMAT
from .flutter_api import FlutterAPIError, is_stable_release
from .flutter_version import FlutterVersionService
from .models import (
    FlutterAPIServiceProtocol,
    FlutterRelease,
    FlutterVersionInfo,
    FlutterVersionServiceProtocol,
)

INSTRUMENTISTO_IMAGE = "instrumentisto/flutter"
CIRRUSLABS_IMAGE = "ghcr.io/cirruslabs/flutter"
_DEBUG_RELEASE_COUNT = 5
_TAG_PRERELEASE_MARKERS = ("-", ".pre", ".rc", ".beta", ".alpha")


class VersionInfoError(Exception):
    """No Flutter version could be determined."""


def is_strict_stable_release(release: FlutterRelease, version: str) -> bool:
    """Tell whether a release is stable, also rejecting pre-release markers in the raw tag."""
    if not is_stable_release(release, version):
        return False
    return not any(marker in release.tag_name for marker in _TAG_PRERELEASE_MARKERS)


class VersionInfoService:
    """Works out the latest Flutter version and its availability in FVM and Docker."""

    def __init__(
        self,
        api_service: FlutterAPIServiceProtocol,
        flutter_version_service: FlutterVersionServiceProtocol | None = None,
    ) -> None:
        self._api_service = api_service
        self._flutter_version_service = (
            FlutterVersionService() if flutter_version_service is None else flutter_version_service
        )

    def _latest_from_official(self, debug_info: list[str]) -> str:
        try:
            official = self._api_service.fetch_official_releases()
            error = None
        except (OSError, FlutterAPIError, ValueError, TypeError) as exc:
            official, error = None, exc

        if official is None or not official.releases:
            reason = "<nil>" if error is None else str(error)
            debug_info.append(f"Official API failed: {reason}, falling back to GitHub API")
            return ""

        debug_info.append("Using official Flutter releases API")
        for release in official.releases:
            if release.channel == "stable":
                debug_info.append(f"Official API: Found stable version: {release.version}")
                return release.version
        return ""

    def _latest_from_github(self, debug_info: list[str]) -> str:
        try:
            releases = self._api_service.fetch_releases()
        except (OSError, FlutterAPIError, ValueError, TypeError) as error:
            raise VersionInfoError(
                f"failed to fetch Flutter releases from GitHub: {error}"
            ) from error
        if not releases:
            raise VersionInfoError("no Flutter releases found")

        debug_info.append("Falling back to GitHub API releases")
        for index, release in enumerate(releases):
            if index < _DEBUG_RELEASE_COUNT:
                debug_info.append(
                    f"GitHub Release {index}: {release.tag_name} "
                    f"(prerelease: {str(release.prerelease).lower()})"
                )
            version = self._api_service.parse_version_from_release(release)
            if is_strict_stable_release(release, version):
                debug_info.append(f"GitHub: Found stable version: {version}")
                return version

        latest = self._api_service.parse_version_from_release(releases[0])
        debug_info.append(f"GitHub: No stable found, using latest: {latest}")
        return latest

    def get_flutter_version_info(self) -> FlutterVersionInfo:
        """Find the latest version (local CLI, official index, then GitHub) and check availability."""
        debug_info: list[str] = []
        latest_version = ""
        installed_version = ""
        channel = ""

        cli = self._flutter_version_service
        flutter_installed = cli.is_flutter_installed()
        if flutter_installed:
            try:
                installed_version = cli.get_installed_flutter_version()
            except (OSError, subprocess.SubprocessError, ValueError) as error:
                debug_info.append(f"Error getting installed Flutter version: {error}")
            else:
                latest_version = installed_version
                debug_info.append(f"Using installed Flutter version: {installed_version}")
                try:
                    channel = cli.get_flutter_channel()
                except (OSError, subprocess.SubprocessError, ValueError):
                    channel = ""
                debug_info.append(f"Flutter channel: {channel}")
        else:
            debug_info.append("Flutter CLI not installed, falling back to GitHub API")

        if not latest_version:
            latest_version = self._latest_from_official(debug_info)
            if not latest_version:
                latest_version = self._latest_from_github(debug_info)

        info = FlutterVersionInfo(
            latest_version=latest_version,
            fvm_installed=self._api_service.check_fvm_installed(),
        )
        if info.fvm_installed:
            info.fvm_version_exists = self._api_service.check_fvm_version_exists(latest_version)
        info.docker_images.instrumentisto = self._api_service.check_docker_image_exists(
            INSTRUMENTISTO_IMAGE, latest_version
        )
        info.docker_images.cirruslabs = self._api_service.check_docker_image_exists(
            CIRRUSLABS_IMAGE, latest_version
        )
        info.details = self.build_details(
            info, flutter_installed, installed_version, channel, debug_info
        )
        return info

    def build_details(
        self,
        info: FlutterVersionInfo,
        flutter_installed: bool,
        installed_version: str,
        channel: str,
        debug_info: Sequence[str],
    ) -> str:
        """Render the human-readable report of the version information."""
        version = info.latest_version
        checked = datetime.now().strftime(TIMESTAMP_DISPLAY_FORMAT)
        lines = [f"Latest Flutter Version: {version} (Checked: {checked})", ""]

        if flutter_installed:
            lines.append("Flutter CLI: ✅ Installed")
            if installed_version:
                lines.append(f"  - Installed Version: {installed_version}")
                if channel:
                    lines.append(f"  - Channel: {channel}")
        else:
            lines.append("Flutter CLI: ❌ Not installed")
            lines.append("  - Install Flutter: https://docs.flutter.dev/get-started/install")
        lines.append("")

        if info.fvm_installed:
            lines.append("FVM Status: ✅ Installed")
            if info.fvm_version_exists:
                lines.append(f"  - Version {version}: ✅ Available locally")
            else:
                lines.append(f"  - Version {version}: ❌ Not installed locally")
                lines.append(f"  - Install with: fvm install {version}")
        else:
            lines.append("FVM Status: ❌ Not installed")
            lines.append("  - Install FVM: https://fvm.app/docs/getting_started/installation")

        lines.extend(["", "Docker Images:"])
        for image, available in (
            (INSTRUMENTISTO_IMAGE, info.docker_images.instrumentisto),
            (CIRRUSLABS_IMAGE, info.docker_images.cirruslabs),
        ):
            status = "✅ Available" if available else "❌ Not available"
            lines.append(f"  - {image}:{version} {status}")

        lines.extend(["", "Usage Examples:"])
        if info.fvm_installed:
            lines.append(f"  - FVM: fvm use {version}")
        lines.append(
            f"  - Docker (instrumentisto): docker run -it {INSTRUMENTISTO_IMAGE}:{version}"
        )
        lines.append(f"  - Docker (cirruslabs): docker run -it {CIRRUSLABS_IMAGE}:{version}")

        lines.extend(["", "--- Debug Info ---"])
        lines.extend(debug_info)
        return "\n".join(lines) + "\n"