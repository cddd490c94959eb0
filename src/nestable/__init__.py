"""nestable - a content-addressed, append-only notebook."""

__version__ = "0.3.0"
