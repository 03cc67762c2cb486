"""Configuration module using Pydantic and Pydantic Settings.

Provides process-wide defaults with environment variable support and
validated per-model options.

Usage:
    from modelcache.config import CacheSettings, ModelOptions

    settings = CacheSettings(connection="api")
    options = ModelOptions.build(settings, name="user")
"""

from modelcache.config.models import ModelOptions, ModelOptionsError
from modelcache.config.settings import CacheSettings

__all__ = [
    "CacheSettings",
    "ModelOptions",
    "ModelOptionsError",
]
