"""Flask applications: the workspace API and the generation relay."""
from .app import create_app
from .relay import create_relay_app

__all__ = ["create_app", "create_relay_app"]
