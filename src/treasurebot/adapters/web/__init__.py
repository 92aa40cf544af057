"""Web adapter exposing the bot reports over HTTP."""

from .server import create_status_app, serve_status

__all__ = ["create_status_app", "serve_status"]
