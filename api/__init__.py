"""HTTP surface of the resume review workflow."""

from .app import create_app

__all__ = ["create_app"]
