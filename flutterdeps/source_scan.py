"""Scanning the Flutter framework sources for @Deprecated annotations."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Sequence
from typing import Any

import requests

from .models import Deprecation

log = logging.getLogger(__name__)

SOURCE_BASE_URL = (
    "https://raw.githubusercontent.com/flutter/flutter/master/packages/flutter/lib/src/"
)
SOURCE_DIRECTORIES = (
    "widgets/",
    "material/",
    "cupertino/",
    "services/",
    "rendering/",
    "foundation/",
    "painting/",
    "gestures/",
    "animation/",
)

_RAW_HOST = "https://raw.githubusercontent.com/"
_API_HOST = "https://api.github.com/repos/"
_RATE_LIMIT_MESSAGE = (
    "GitHub API rate limit exceeded. Please wait before retrying or "
    "authenticate with a GitHub token"
)
_TIMEOUT = 30
_CLASS_LOOKBACK = 50
_LOOKAHEAD = 10

_DEPRECATED = re.compile(r"""@[Dd]eprecated\s*\(\s*['"](.+?)['"]""", re.ASCII)
_CLASS = re.compile(r"(?:abstract\s+)?(?:class|enum|mixin)\s+(\w+)", re.ASCII)
_METHOD = re.compile(r"(?:(?:static|final|const)\s+)*(?:[\w<>?]+\s+)?(\w+)\s*\(", re.ASCII)
_CONSTRUCTOR = re.compile(r"(\w+)\s*\.\s*(\w+)\s*\(", re.ASCII)
_PROPERTY = re.compile(
    r"(?:(?:static|final|const)\s+)*(?:[\w<>?]+\s+)+(get\s+)?(\w+)(?:\s*[;=]|\s*=>)", re.ASCII
)
_GETTER = re.compile(r"(?:[\w<>?]+\s+)?get\s+(\w+)\s*(?:=>|{)", re.ASCII)
_SETTER = re.compile(r"set\s+(\w+)\s*\(", re.ASCII)

_NOT_METHODS = frozenset({"if", "for", "while", "switch", "return", "throw"})

_REPLACEMENT_PATTERNS = (
    re.compile(r"use\s+([A-Za-z0-9_.()]+)(?:\s+instead)?", re.IGNORECASE),
    re.compile(r"replaced\s+by\s+([A-Za-z0-9_.()]+)", re.IGNORECASE),
    re.compile(r"use\s+(?:the\s+)?([A-Za-z0-9_.()]+)\s+method", re.IGNORECASE),
    re.compile(r"prefer\s+([A-Za-z0-9_.()]+)", re.IGNORECASE),
)

# Checked in order; more specific patterns come before the ones they contain.
_KNOWN_REPLACEMENTS = (
    ("color.withopacity", "color.withValues(alpha: value)"),
    ("withopacity", "withValues(alpha: value)"),
    ("raisedbutton", "ElevatedButton"),
    ("flatbutton", "TextButton"),
    ("outlinebutton", "OutlinedButton"),
    ("materialbutton", "ElevatedButton, TextButton, or OutlinedButton"),
    ("floatingactionbutton.mini", "FloatingActionButton(mini: true)"),
    ("navigator.of(context).push", "Navigator.push(context, route)"),
    ("navigator.of(context).pop", "Navigator.pop(context)"),
    ("scaffold.of(context).showsnackbar", "ScaffoldMessenger.of(context).showSnackBar"),
    ("text.overflow", "Text with overflow parameter"),
    ("textstyle.height", "TextStyle.height or TextHeightBehavior"),
    ("wrap.direction", "Wrap.direction parameter"),
    ("flex.direction", "Flex.direction parameter"),
    ("animationcontroller.reset", "AnimationController.reset() alternative"),
    ("tween.animate", "Tween.animate() or AnimatedBuilder"),
    ("positioned.fill", "Positioned.fill() constructor"),
    ("expanded.flex", "Expanded(flex: value)"),
    ("flexible.flex", "Flexible(flex: value)"),
)

ProgressCallback = Callable[[str], None]


def _split_lines(text: str) -> list[str]:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


def _enclosing_class(lines: Sequence[str], index: int) -> str:
    start = max(0, index - _CLASS_LOOKBACK)
    for candidate in reversed(lines[start:index]):
        match = _CLASS.search(candidate.strip())
        if match:
            return match.group(1)
    return ""


def _qualified(class_name: str, member: str) -> str:
    return f"{class_name}.{member}" if class_name else member


def _declared_name(line: str, class_name: str) -> str | None:
    """Name of the construct declared on the line, or None if it declares nothing known."""
    if match := _CLASS.search(line):
        return match.group(1)
    if match := _CONSTRUCTOR.search(line):
        return f"{match.group(1)}.{match.group(2)}"
    if match := _GETTER.search(line):
        return _qualified(class_name, match.group(1))
    if match := _SETTER.search(line):
        return _qualified(class_name, match.group(1))
    if match := _METHOD.search(line):
        method = match.group(1)
        if method in _NOT_METHODS:
            return None
        if class_name and method != class_name:
            return f"{class_name}.{method}"
        return method
    if match := _PROPERTY.search(line):
        return _qualified(class_name, match.group(2))
    return None


def _is_skippable(line: str) -> bool:
    return not line or line.startswith(("//", "/*", "@"))


def scan_dart_source(text: str) -> list[Deprecation]:
    """Return the deprecations declared by @Deprecated annotations in Dart source text."""
    lines = _split_lines(text)
    deprecations: list[Deprecation] = []
    for index, raw in enumerate(lines):
        annotation = _DEPRECATED.search(raw.strip())
        if annotation is None:
            continue
        description = annotation.group(1)
        class_name = _enclosing_class(lines, index)

        api_name = ""
        for following in lines[index + 1 : index + 1 + _LOOKAHEAD]:
            candidate = following.strip()
            if _is_skippable(candidate):
                continue
            name = _declared_name(candidate, class_name)
            if name is not None:
                api_name = name
                break

        if not api_name:
            continue
        replacement = extract_replacement(description) or infer_replacement(
            api_name, description
        )
        deprecations.append(
            Deprecation(api=api_name, description=description, replacement=replacement)
        )
    return deprecations


def extract_replacement(description: str) -> str:
    """Pick a suggested replacement out of a deprecation message, or return ''."""
    for pattern in _REPLACEMENT_PATTERNS:
        match = pattern.search(description)
        if match:
            return match.group(1)
    return ""


def infer_replacement(api_name: str, description: str) -> str:
    """Guess a replacement from the API name and message, or return ''."""
    desc = description.lower()
    api = api_name.lower()

    for pattern, replacement in _KNOWN_REPLACEMENTS:
        if pattern in api:
            return replacement

    if "will lead to bugs" in desc or "causes issues" in desc:
        if "jump" in api or "scroll" in api:
            return "Use ScrollController methods or ScrollPosition alternatives"
        return "Alternative implementation recommended - see Flutter documentation"
    if "performance" in desc:
        return "More efficient alternative available - check Flutter performance guide"
    if "accessibility" in desc:
        return "Use semantically improved alternative for better accessibility"
    if api.endswith("withoutsettling"):
        return "Use standard navigation/animation methods that properly settle"
    if "copywidth" in api or "copyheight" in api:
        return "Use copyWith() with specific dimension parameters"
    if "button" in api:
        return "Use Material 3 button alternatives (ElevatedButton, TextButton, OutlinedButton)"
    if "color" in api:
        return "Use updated Color API with values() constructor"
    if "theme" in api:
        return "Use Material 3 ThemeData with updated color scheme"
    return ""


def _client(session: Any) -> Any:
    return requests if session is None else session


def scan_file_for_deprecations(file_url: str, session: Any = None) -> list[Deprecation]:
    """Download one Dart file and return the deprecations it declares."""
    response = _client(session).get(file_url, timeout=_TIMEOUT)
    if response.status_code != 200:
        raise requests.HTTPError(
            f"failed to fetch file: {response.status_code}", response=response
        )
    return scan_dart_source(response.content.decode("utf-8", errors="replace"))


def _listing_url(base_url: str) -> str:
    url = base_url.replace(_RAW_HOST, _API_HOST, 1)
    return url.replace("/master/", "/contents/", 1)


def _raise_if_forbidden(response: Any) -> None:
    if response.status_code != 403:
        return
    message = ""
    try:
        data = json.loads(response.content)
    except ValueError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        message = data["message"]
    if "API rate limit exceeded" in message:
        raise requests.HTTPError(_RATE_LIMIT_MESSAGE, response=response)
    raise requests.HTTPError(
        f"GitHub API access forbidden (403): {message}", response=response
    )


def _dart_file_names(base_url: str, session: Any) -> list[str]:
    url = _listing_url(base_url)
    log.debug("Fetching directory listing from: %s", url)
    response = _client(session).get(url, timeout=_TIMEOUT)
    _raise_if_forbidden(response)
    if response.status_code != 200:
        raise requests.HTTPError(
            f"failed to fetch directory listing: {response.status_code}", response=response
        )
    entries = json.loads(response.content)
    if not isinstance(entries, list):
        raise ValueError("directory listing is not a list")
    names = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError("directory listing entry is not an object")
        name, kind = entry.get("name") or "", entry.get("type") or ""
        if kind == "file" and name.endswith(".dart"):
            names.append(name)
    return names


def scan_directory_for_deprecations(
    base_url: str,
    session: Any = None,
    progress_callback: ProgressCallback | None = None,
    verbose: bool = False,
) -> list[Deprecation]:
    """Scan every Dart file of one source directory; files that fail are skipped."""
    file_names = _dart_file_names(base_url, session)
    if progress_callback is not None and file_names:
        progress_callback(f"  📜 Found {len(file_names)} Dart files to scan")

    deprecations: list[Deprecation] = []
    for number, file_name in enumerate(file_names, start=1):
        if verbose:
            log.info("Scanning file %d/%d: %s", number, len(file_names), file_name)
        try:
            found = scan_file_for_deprecations(base_url + file_name, session)
        except (requests.RequestException, ValueError) as error:
            if progress_callback is None:
                print(f"Warning: Failed to scan file {file_name}: {error}")
            elif verbose:
                log.warning("Failed to scan file %s: %s", file_name, error)
            continue
        deprecations.extend(found)
        if progress_callback is not None and found:
            progress_callback(f"  🔍 Found {len(found)} deprecations in {file_name}")
    return deprecations


def fetch_source_deprecations(
    session: Any = None,
    progress_callback: ProgressCallback | None = None,
    verbose: bool = False,
) -> list[Deprecation]:
    """Scan the main Flutter framework directories; directories that fail are skipped."""
    deprecations: list[Deprecation] = []
    total = len(SOURCE_DIRECTORIES)
    for number, directory in enumerate(SOURCE_DIRECTORIES, start=1):
        if progress_callback is not None:
            progress_callback(f"📂 Scanning directory {number}/{total}: {directory}")
        if verbose:
            log.info("Scanning directory: %s", directory)
        try:
            found = scan_directory_for_deprecations(
                SOURCE_BASE_URL + directory, session, progress_callback, verbose
            )
        except (requests.RequestException, ValueError) as error:
            if progress_callback is None:
                print(f"Warning: Failed to scan directory {directory}: {error}")
            else:
                if verbose:
                    log.warning("Failed to scan directory %s: %s", directory, error)
                progress_callback(f"⚠️ Warning: Failed to scan directory {directory}")
            continue
        deprecations.extend(found)
        if verbose:
            log.info("Found %d deprecations in directory %s", len(found), directory)

    if progress_callback is not None:
        progress_callback(f"✅ Completed scanning {total} directories")
    return deprecations