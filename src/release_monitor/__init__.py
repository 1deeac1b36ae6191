"""Release monitor: watch GitHub releases and route them by severity."""

__version__ = "0.1.0"
