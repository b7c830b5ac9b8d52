"""Delete git branches whose pull requests have been merged."""

__version__ = "0.1.0"
