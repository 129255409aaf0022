"""Ruby on Rails viewers."""

from .gems import RailsGemsViewer
from .routes import RailsRoutesViewer
from .schema import RailsSchemaViewer

__all__ = ["RailsGemsViewer", "RailsRoutesViewer", "RailsSchemaViewer"]
