"""Web application package for the Comax console."""

from flask import Flask

from comax.config import initialize_app


def create_app() -> Flask:
    """Application factory for the console API."""
    initialize_app()

    from .app import build_app  # Import here to avoid circular imports

    return build_app()


__all__ = ["create_app"]
