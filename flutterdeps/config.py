"""Settings shared by the cache, the release lookups and the source scanner."""

from datetime import timedelta

CACHE_DIR_NAME = ".flutter-deprecations"
CACHE_FILE = "flutter_deprecations.json"
CACHE_DURATION = timedelta(hours=24)

FLUTTER_API_URL = "https://api.github.com/repos/flutter/flutter/releases"
FLUTTER_RELEASES_URL = (
    "https://storage.googleapis.com/flutter_infra_release/releases/releases_linux.json"
)

MAX_RELEASES = 100

TIMESTAMP_DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"