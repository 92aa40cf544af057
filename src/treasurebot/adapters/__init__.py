"""Adapters connecting the bot to backends and operators."""

from .dummy import DummyGameClient

__all__ = ["DummyGameClient"]
