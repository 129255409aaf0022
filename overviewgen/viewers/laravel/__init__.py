"""Laravel-specific viewers."""

from .routes import LaravelRoutesViewer
from .schema import LaravelSchemaViewer

__all__ = ["LaravelRoutesViewer", "LaravelSchemaViewer"]
