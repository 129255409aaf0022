"""Markdown project overviews for Laravel, Rails and PHP codebases."""

__version__ = "1.1.0"
