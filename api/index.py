"""Serverless entry point: hosts that import an ASGI ``app`` from ``api/``."""

from gitfirst.config import Settings
from gitfirst.logging_setup import setup_logging
from gitfirst.server import create_app

settings = Settings()
setup_logging(settings.logging)
app = create_app(settings)
