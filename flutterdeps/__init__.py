"""An MCP server and services for finding deprecated Flutter APIs and Flutter version availability."""

__version__ = "0.1.0"
__all__ = ["__version__"]