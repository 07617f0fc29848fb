"""Account Admin API package."""

from .app import configure_fastapi_app, create_app
from .config import AppConfig, load_env_file

__all__ = ["AppConfig", "configure_fastapi_app", "create_app", "load_env_file"]
