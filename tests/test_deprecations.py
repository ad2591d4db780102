from datetime import datetime, timedelta, timezone

import pytest

from flutterdeps.deprecations import (
    DeprecationService,
    is_version_from_last_18_months,
    known_deprecation_patterns,
)
from flutterdeps.flutter_api import FlutterAPIError
from flutterdeps.models import Deprecation, DeprecationCache, FlutterRelease, ZERO_TIME


class MemoryCache:
    def __init__(self, cache=None, fail=False):
        self.cache = cache or DeprecationCache()
        self.fail = fail
        self.saved = []

    def load(self):
        if self.fail:
            raise OSError("unreadable")
        return self.cache

    def save(self, cache):
        self.saved.append(cache)
        self.cache = cache


class FakeAPI:
    def __init__(self, source=None, error=None):
        self.source = source or []
        self.error = error
        self.calls = 0

    def parse_version_from_release(self, release):
        return release.tag_name.removeprefix("v")

    def fetch_flutter_source_deprecations(self):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.source)

    def fetch_flutter_source_deprecations_with_progress(self, progress_callback, verbose):
        self.calls += 1
        if self.error:
            raise self.error
        progress_callback("scanning")
        return list(self.source)


def _service(cache=None, api=None):
    return DeprecationService(cache or MemoryCache(), api or FakeAPI())


def _stamp(moment):
    return moment.replace(microsecond=0).isoformat()


@pytest.mark.parametrize(
    "code, expected_count, expected_apis",
    [
        ("Color.red.withOpacity(0.5)", 1, {"Color.withOpacity"}),
        ("RaisedButton(onPressed: () {}, child: Text('Click'))", 1, {"RaisedButton"}),
        (
            "RaisedButton(child: Text('Click')) and FlatButton(child: Text('Flat'))",
            2,
            {"RaisedButton", "FlatButton"},
        ),
        ("ElevatedButton(onPressed: () {}, child: Text('Modern'))", 0, set()),
        (
            "Scaffold.of(context).showSnackBar(SnackBar(content: Text('Test')))",
            1,
            {"Scaffold.of(context).showSnackBar"},
        ),
    ],
)
def test_check_code_for_deprecations(code, expected_count, expected_apis):
    found = _service().check_code_for_deprecations(code)
    assert len(found) == expected_count
    assert {dep.api for dep in found} == expected_apis


def test_check_code_includes_cached_apis():
    cache = DeprecationCache(
        deprecations=[Deprecation(api="ColorScheme.background"), Deprecation(api="")]
    )
    found = _service(MemoryCache(cache)).check_code_for_deprecations(
        "final c = ColorScheme.background;"
    )
    assert [dep.api for dep in found] == ["ColorScheme.background"]


def test_check_code_ignores_unreadable_cache():
    found = _service(MemoryCache(fail=True)).check_code_for_deprecations("FlatButton()")
    assert [dep.api for dep in found] == ["FlatButton"]


def test_known_patterns_have_six_entries_and_fresh_copies():
    first = known_deprecation_patterns()
    assert len(first) == 6
    next(iter(first.values())).api = "changed"
    assert "changed" not in {dep.api for dep in known_deprecation_patterns().values()}


def test_extract_deprecations_from_release_notes():
    now = datetime.now(timezone.utc)
    releases = [
        FlutterRelease(
            tag_name="3.31.0",
            published_at=_stamp(now - timedelta(days=180)),
            body=(
                "RaisedButton is deprecated, use ElevatedButton instead. Also deprecated "
                "ColorScheme.background in favor of ColorScheme.surface."
            ),
        ),
        FlutterRelease(
            tag_name="2.0.0",
            published_at=_stamp(now - timedelta(days=730)),
            body="OldWidget is deprecated, use NewWidget instead.",
        ),
    ]
    deprecations = _service().extract_deprecations_from_release_notes(releases)

    assert len(deprecations) == 8
    apis = {dep.api for dep in deprecations}
    assert "Color.withOpacity" in apis
    assert "RaisedButton" in apis
    assert "OldWidget" not in apis

    background = next(dep for dep in deprecations if dep.api == "ColorScheme.background")
    assert background.replacement == "ColorScheme.surface"
    assert background.version == "3.31.0"
    assert background.description == "Deprecated in Flutter 3.31.0"

    raised = [dep for dep in deprecations if dep.api == "RaisedButton"]
    assert {dep.version for dep in raised} == {"3.31.0", "Multiple versions"}


def test_extract_with_no_releases_gives_known_patterns():
    deprecations = _service().extract_deprecations_from_release_notes([])
    assert len(deprecations) == 6
    assert all(dep.version == "Multiple versions" for dep in deprecations)


NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "published_at, expected",
    [
        ("2024-12-15T12:00:00Z", True),
        ("2024-06-15T12:00:00Z", True),
        ("2023-06-15T12:00:00Z", False),
        ("invalid-date", False),
        ("2023-12-15T12:00:00Z", False),
        ("2023-12-15T12:00:01Z", True),
        ("2024-06-15T14:00:00+02:00", True),
    ],
)
def test_is_version_from_last_18_months(published_at, expected):
    assert is_version_from_last_18_months(published_at, NOW) is expected


def test_month_overflow_rolls_forward():
    now = datetime(2025, 8, 31, tzinfo=timezone.utc)
    assert is_version_from_last_18_months("2024-03-01T12:00:00Z", now) is False
    assert is_version_from_last_18_months("2024-03-02T00:00:01Z", now) is True


def test_is_version_from_last_18_months_default_now():
    recent = _stamp(datetime.now(timezone.utc) - timedelta(days=30))
    assert is_version_from_last_18_months(recent) is True


def test_update_cache_rebuilds_stale_cache():
    cache = MemoryCache(DeprecationCache(last_updated=ZERO_TIME))
    api = FakeAPI(source=[Deprecation(api="Foo.bar", description="Use baz")])
    _service(cache, api).update_cache()

    assert api.calls == 1
    saved = cache.saved[-1]
    assert len(saved.deprecations) == 7
    assert saved.deprecations[0].api == "Foo.bar"
    assert all(dep.version == "Multiple versions" for dep in saved.deprecations[1:])
    assert datetime.now(timezone.utc) - saved.last_updated < timedelta(minutes=1)


def test_update_cache_skips_fresh_cache():
    cache = MemoryCache(DeprecationCache(last_updated=datetime.now(timezone.utc)))
    api = FakeAPI()
    _service(cache, api).update_cache()
    assert api.calls == 0
    assert cache.saved == []


def test_update_cache_wraps_fetch_errors():
    api = FakeAPI(error=FlutterAPIError("boom"))
    with pytest.raises(RuntimeError, match="failed to fetch source deprecations: boom"):
        _service(MemoryCache(), api).update_cache()


def test_update_cache_with_progress_reports_steps():
    cache = MemoryCache()
    api = FakeAPI(source=[Deprecation(api="Foo.bar")])
    messages = []
    _service(cache, api).update_cache_with_progress(messages.append, False)

    assert messages == [
        "🖻 Scanning Flutter source code for @Deprecated annotations...",
        "scanning",
        "📊 Found 1 deprecations from source code",
        "📁 Adding known deprecation patterns...",
        "💾 Saving 7 total deprecations to cache...",
    ]
    assert len(cache.saved[-1].deprecations) == 7


def test_update_cache_with_progress_skips_fresh_cache():
    cache = MemoryCache(DeprecationCache(last_updated=datetime.now(timezone.utc)))
    api = FakeAPI()
    messages = []
    _service(cache, api).update_cache_with_progress(messages.append, True)
    assert messages == ["Cache is up to date, skipping update"]
    assert api.calls == 0


def test_update_cache_with_progress_wraps_errors():
    api = FakeAPI(error=OSError("offline"))
    with pytest.raises(RuntimeError, match="offline"):
        _service(MemoryCache(), api).update_cache_with_progress(lambda _: None, False)