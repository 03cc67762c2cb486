"""Process-wide defaults using Pydantic Settings.

Provides typed defaults for every model with environment variable support.

Usage:
    from modelcache.config import CacheSettings

    # Load from environment variables (MODELCACHE_*)
    settings = CacheSettings()

    # Or override with explicit values
    settings = CacheSettings(connection="api", id_attribute="uuid")
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):  # type: ignore[misc]
    """Defaults applied to every model unless its options override them.

    Attributes:
        connection: Connection used by models that do not name one.
        id_attribute: Field holding an entity's identity.
        created_on_attribute: Field holding an entity's creation time.
        updated_on_attribute: Field holding an entity's last update time.

    Environment Variables:
        MODELCACHE_CONNECTION
        MODELCACHE_ID_ATTRIBUTE
        MODELCACHE_CREATED_ON_ATTRIBUTE
        MODELCACHE_UPDATED_ON_ATTRIBUTE
    """

    model_config = SettingsConfigDict(
        env_prefix="MODELCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    connection: str = ""
    id_attribute: str = "id"
    created_on_attribute: str = "createdAt"
    updated_on_attribute: str = "updatedAt"
