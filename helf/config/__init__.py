"""Application configuration module.

- **settings.py**: Environment-based settings (Pydantic BaseSettings)
  - Database URL, LLM config, assistant deadline, local session cache options
  - Loaded from .env file via pydantic-settings
"""
from helf.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
