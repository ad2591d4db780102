from datetime import datetime, timezone

from flutterdeps.handlers import MCPHandlers
from flutterdeps.models import (
    Deprecation,
    DeprecationCache,
    FlutterVersionInfo,
)
from flutterdeps.version_info import VersionInfoError


class FakeCacheService:
    def __init__(self, cache=None, error=None):
        self.cache = cache
        self.error = error

    def load(self):
        if self.error is not None:
            raise self.error
        if self.cache is None:
            return DeprecationCache(last_updated=datetime.now(timezone.utc))
        return self.cache

    def save(self, cache):
        self.cache = cache


class FakeDeprecationService:
    def __init__(self, deprecations=None):
        self.deprecations = deprecations or []
        self.seen = []

    def check_code_for_deprecations(self, code):
        self.seen.append(code)
        return self.deprecations

    def update_cache(self):
        return None

    def extract_deprecations_from_release_notes(self, releases):
        return self.deprecations


class FakeVersionInfoService:
    def __init__(self, info=None, error=None):
        self.info = info
        self.error = error

    def get_flutter_version_info(self):
        if self.error is not None:
            raise self.error
        return self.info


def test_check_with_deprecations_found():
    service = FakeDeprecationService(
        [
            Deprecation(
                api="Color.withOpacity",
                replacement="Color.withValues(alpha: $1)",
                description="withOpacity is deprecated",
                example="Color.red.withOpacity(0.5) → Color.red.withValues(alpha: 0.5)",
                version="Multiple versions",
            )
        ]
    )
    handlers = MCPHandlers(service, None, None)
    content = handlers.check_flutter_deprecations("Color.red.withOpacity(0.5)")
    assert "Found deprecated APIs" in content
    assert "Color.withOpacity" in content
    assert "withOpacity is deprecated" in content
    assert "   - Since version: Multiple versions" in content
    assert service.seen == ["Color.red.withOpacity(0.5)"]


def test_check_with_no_deprecations():
    handlers = MCPHandlers(FakeDeprecationService([]), None, None)
    content = handlers.check_flutter_deprecations("ElevatedButton()")
    assert "No deprecated APIs found" in content


def test_check_omits_empty_optional_fields():
    service = FakeDeprecationService([Deprecation(api="OldApi", description="gone")])
    content = MCPHandlers(service, None, None).check_flutter_deprecations("OldApi")
    assert "Replacement" not in content
    assert "Example" not in content
    assert "Since version" not in content
    assert "1. **OldApi**" in content


def test_list_with_cache_data_sorted_by_api():
    cache = DeprecationCache(
        last_updated=datetime.now(timezone.utc),
        deprecations=[
            Deprecation(
                api="RaisedButton",
                replacement="ElevatedButton",
                description="RaisedButton is deprecated",
                version="Multiple versions",
            ),
            Deprecation(
                api="FlatButton",
                replacement="TextButton",
                description="FlatButton is deprecated",
                version="Multiple versions",
            ),
        ],
    )
    handlers = MCPHandlers(None, None, FakeCacheService(cache))
    content = handlers.list_flutter_deprecations()
    assert "Flutter Deprecations" in content
    assert "RaisedButton" in content
    assert "FlatButton" in content
    assert content.index("**FlatButton**") < content.index("**RaisedButton**")


def test_list_with_empty_cache():
    cache = DeprecationCache(last_updated=datetime.now(timezone.utc), deprecations=[])
    handlers = MCPHandlers(None, None, FakeCacheService(cache))
    assert "No deprecations found in cache" in handlers.list_flutter_deprecations()


def test_list_reports_load_error():
    handlers = MCPHandlers(None, None, FakeCacheService(error=OSError("disk failure")))
    content = handlers.list_flutter_deprecations()
    assert content == "Error loading deprecations: disk failure"


def test_version_info_success():
    info = FlutterVersionInfo(
        latest_version="3.32.0",
        fvm_installed=True,
        fvm_version_exists=True,
        details="Latest Flutter Version: 3.32.0\n\nFVM Status: ✅ Installed",
    )
    handlers = MCPHandlers(None, FakeVersionInfoService(info=info), None)
    content = handlers.check_flutter_version_info()
    assert "3.32.0" in content
    assert "FVM Status: ✅ Installed" in content


def test_version_info_error():
    service = FakeVersionInfoService(error=VersionInfoError("GitHub API failed"))
    handlers = MCPHandlers(None, service, None)
    content = handlers.check_flutter_version_info()
    assert "Error getting Flutter version info" in content
    assert "GitHub API failed" in content