"""ESG metric collection, approval and reporting."""

__version__ = "0.1.0"
