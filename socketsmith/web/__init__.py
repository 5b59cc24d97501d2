"""Flask web API for Socket Smith."""

from .server import create_app

__all__ = ['create_app']
