# flutterdeps

A Model Context Protocol (MCP) server that helps keep Flutter code up to date.
It speaks JSON-RPC over standard input and output, one JSON message per line, and

- checks Dart/Flutter code snippets for deprecated APIs and suggests replacements,
- keeps a local cache of deprecations collected from `@Deprecated` annotations
  in the Flutter framework sources, together with a set of well-known patterns
  (`RaisedButton`, `FlatButton`, `OutlineButton`, `Color.withOpacity`,
  `Scaffold.of(context).showSnackBar`, `FloatingActionButton(child:`),
- reports the latest Flutter version and whether it is available in FVM and in
  the `instrumentisto/flutter` and `ghcr.io/cirruslabs/flutter` Docker images.

## Installation

```
pip install .
```

Python 3.11 or later is required. The only runtime dependency is `requests`.

## Running the server

```
flutter-deprecations-server
```

On start-up the server refreshes the deprecation cache if it is older than
24 hours, prints a start-up message to standard error and then answers
requests on standard input until the input ends. Point your MCP client at the
`flutter-deprecations-server` command.

The server answers `initialize`, `ping`, `tools/list` and `tools/call`;
notifications get no reply, and unknown methods get a JSON-RPC
"method not found" error.

### Tools

| Tool | Arguments | What it does |
| --- | --- | --- |
| `check_flutter_deprecations` | `code` (string) | Lists deprecated APIs found in the snippet: the built-in patterns that match it, and cached deprecations whose API name occurs in it, with replacement, description, example and version where known. |
| `list_flutter_deprecations` | none | Lists every cached deprecation, sorted by API name, with the time of the last update. |
| `check_flutter_version_info` | none | Reports the latest Flutter version, the local Flutter CLI and FVM status, Docker image availability, usage examples and some debug information. |

The version is taken from the installed `flutter` CLI when it runs; otherwise
from the first stable entry of the official Flutter releases feed; and as a
last resort from the GitHub releases of the Flutter repository, where the
newest plain `X.Y.Z` release without pre-release markers is chosen (or the
newest release of all, if none is stable). FVM is checked by running `fvm`.

## Managing the cache

The cache lives in `~/.flutter-deprecations/flutter_deprecations.json`.
A missing or unreadable cache file is treated as an empty cache.

```
flutter-deprecations-server --update        # or -u: refresh the cache and exit
flutter-deprecations-server --show-cache    # or -sc: print the cached deprecations
flutter-deprecations-server --clear-cache   # or -cc: delete the cache file
flutter-deprecations-server --vvv           # start with verbose logging to standard error
flutter-deprecations-server --help          # or -h
```

`--update` also skips the refresh when the cache is less than 24 hours old.
A refresh scans the `widgets`, `material`, `cupertino`, `services`,
`rendering`, `foundation`, `painting`, `gestures` and `animation` directories
of the Flutter framework through the GitHub API. Directories and files that
cannot be fetched, for example because of GitHub's rate limit, are skipped and
reported.

## Using the library

The services can be used directly:

```python
from pathlib import Path

from flutterdeps.cache import CacheService
from flutterdeps.deprecations import DeprecationService
from flutterdeps.flutter_api import FlutterAPIService

cache = CacheService(Path.home() / ".flutter-deprecations")
service = DeprecationService(cache, FlutterAPIService(None))

for dep in service.check_code_for_deprecations("RaisedButton(onPressed: () {})"):
    print(dep.api, "->", dep.replacement)
```

Other entry points:

- `flutterdeps.source_scan.scan_dart_source(text)` extracts deprecations from
  Dart source text; `extract_replacement` and `infer_replacement` suggest
  replacements from a deprecation message and API name.
- `flutterdeps.version_info.VersionInfoService` gathers the version report.
- `flutterdeps.handlers.MCPHandlers` produces the text each tool returns, and
  `flutterdeps.server.build_server(handlers)` returns an `McpServer` with the
  three tools registered.

## Limitations

- `list_flutter_deprecations` takes no arguments and does no filtering; it
  always lists the whole cache.
- GitHub requests are unauthenticated; there is no way to supply a token.
- For `ghcr.io/cirruslabs/flutter` only the existence of the package is
  checked, not the specific version tag.
- Only MCP tools are offered; there are no resources or prompts.

## Development

```
pip install -e ".[test]"
pytest
```