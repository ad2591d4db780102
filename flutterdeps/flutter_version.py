"""Querying the installed Flutter command-line tool."""

from __future__ import annotations

import re
import subprocess

_VERSION_RE = re.compile(r"Flutter (\d+\.\d+\.\d+)", re.ASCII)
_CHANNEL_RE = re.compile(r"• channel (\w+) •", re.ASCII)


def parse_version_line(line: str) -> str:
    """Return the version from a line such as 'Flutter 3.32.0 • channel stable • ...'."""
    match = _VERSION_RE.search(line)
    if match is None:
        raise ValueError(f"could not parse version from: {line}")
    return match.group(1)


def parse_channel_line(line: str) -> str:
    """Return the channel named in a version line, or 'unknown'."""
    match = _CHANNEL_RE.search(line)
    return match.group(1) if match else "unknown"


class FlutterVersionService:
    """Reads the version and channel of the locally installed Flutter."""

    executable = "flutter"

    def _first_line(self) -> str:
        result = subprocess.run(
            [self.executable, "--version"],
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.split("\n")[0]

    def get_installed_flutter_version(self) -> str:
        """Return the installed version; raise if Flutter cannot run or its output is unknown."""
        return parse_version_line(self._first_line())

    def is_flutter_installed(self) -> bool:
        try:
            subprocess.run(
                [self.executable, "--version"],
                capture_output=True,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError):
            return False
        return True

    def get_flutter_channel(self) -> str:
        """Return the channel (stable, beta, ...) or 'unknown'; raise if Flutter cannot run."""
        return parse_channel_line(self._first_line())