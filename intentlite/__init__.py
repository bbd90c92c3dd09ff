"""intentlite: offline, configuration-driven intent extraction."""

__version__ = "0.1.0"
