"""JSON API for the ESG dashboard."""

from .app import create_app

__all__ = ["create_app"]
