"""Contract log scanner, SQLite cache and usage metrics for Citrea."""

__version__ = "0.1.0"
