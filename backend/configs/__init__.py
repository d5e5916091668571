"""
Configuration management module.

Type-safe settings loaded from the environment (and .env) with Pydantic
Settings. Each concern has its own prefix: POSTGRES_, CELERY_, PIPELINE_,
STORAGE_, AUTH_.
"""

from backend.configs.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
