"""Commerce platform Data API exposed as assistant tools."""
__version__ = "1.1.0"
