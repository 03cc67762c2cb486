"""Per-model options, validated at model construction.

Usage:
    options = ModelOptions.build(
        CacheSettings(connection="api"),
        name="user",
        defaults={"active": True},
        requests={"login": {"route": "/user/login", "method": "post"}},
    )
    options.url    # "/user"
    options.event  # "user"
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from modelcache.config.settings import CacheSettings


class ModelOptionsError(ValueError):
    """Raised when a model is constructed with missing or malformed options."""

    pass


class ModelOptions(BaseModel):
    """Validated, read-only configuration of one model.

    Attributes:
        name: Model name, also its table/context on the server.
        connection: Connection requests are executed on.
        url: Base url of the RESTful requests. Defaults to ``/{name}``.
        event: Server event name for pushed changes. Defaults to ``name``.
        defaults: Field values merged under attributes by ``create()``.
        requests: Extra request definitions ``{name: {"route", "method"}}``.
        api: Extra methods ``{name: fn(model, ...)}`` bound to the model.
        id_attribute: Field holding an entity's identity.
        created_on_attribute: Field holding an entity's creation time.
        updated_on_attribute: Field holding an entity's last update time.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    name: str = Field(min_length=1)
    connection: str = Field(min_length=1)
    url: str = ""
    event: str = ""
    defaults: dict[str, Any] = Field(default_factory=dict)
    requests: dict[str, dict[str, Any]] = Field(default_factory=dict)
    api: dict[str, Callable[..., Any]] = Field(default_factory=dict)
    id_attribute: str = Field(default="id", min_length=1)
    created_on_attribute: str = "createdAt"
    updated_on_attribute: str = "updatedAt"

    @model_validator(mode="before")
    @classmethod
    def _derive_url_and_event(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("name"):
            data = dict(data)
            if not data.get("url"):
                data["url"] = f"/{data['name']}"
            if not data.get("event"):
                data["event"] = data["name"]
        return data

    @field_validator("requests")
    @classmethod
    def _requests_have_routes(cls, value: dict[str, dict[str, Any]]) -> dict[str, dict[str, Any]]:
        for name, definition in value.items():
            if not definition.get("route"):
                raise ValueError(f"request '{name}' needs a route")
        return value

    @classmethod
    def build(cls, settings: CacheSettings | None = None, **options: Any) -> ModelOptions:
        """Validate options on top of process-wide settings.

        Args:
            settings: Defaults for connection and field names.
            **options: Model options; explicit values win over settings.

        Returns:
            Validated options.

        Raises:
            ModelOptionsError: If name or connection is missing, or options are malformed.
        """
        settings = settings or CacheSettings()
        merged: dict[str, Any] = {
            "connection": settings.connection,
            "id_attribute": settings.id_attribute,
            "created_on_attribute": settings.created_on_attribute,
            "updated_on_attribute": settings.updated_on_attribute,
        }
        merged.update({key: value for key, value in options.items() if value is not None})
        try:
            return cls.model_validate(merged)
        except ValidationError as e:
            name = options.get("name") or "<unnamed>"
            raise ModelOptionsError(f"Invalid options for model {name}: {e}") from e
