[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "flutterdeps"
version = "0.1.0"
description = "MCP server that finds deprecated Flutter APIs in code and reports on Flutter release availability"
requires-python = ">=3.11"
keywords = ["flutter", "dart", "deprecations", "mcp", "model-context-protocol", "fvm", "docker"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development",
]
dependencies = [
    "requests>=2.28",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.23",
]

[project.scripts]
flutter-deprecations-server = "flutterdeps.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["flutterdeps"]

[tool.hatch.build.targets.sdist]
include = ["flutterdeps", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
check_untyped_defs = true
