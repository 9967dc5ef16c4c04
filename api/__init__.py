"""API package __init__.py"""
from .auth import is_authorized
from .server import HttpServer, create_app

__all__ = ["is_authorized", "HttpServer", "create_app"]
