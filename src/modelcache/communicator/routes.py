"""Request templates for the RESTful operations every model supports."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from modelcache.communicator.protocol import RequestTemplate

FIND_ALL = "find_all"
FIND_BY_ID = "find_by_id"
CREATE = "create"
UPDATE = "update"
DESTROY = "destroy"

REST_REQUESTS = (FIND_ALL, FIND_BY_ID, CREATE, UPDATE, DESTROY)


def make_rest_requests(url: str, context: str = "", connection: str = "") -> dict[str, RequestTemplate]:
    """Build the find_all/find_by_id/create/update/destroy templates for a base url.

    Args:
        url: Base url of the model, e.g. ``/user``.
        context: Name of the owning model.
        connection: Connection the requests run on.

    Returns:
        Request name -> template.
    """
    base = url.rstrip("/") or "/"
    item = f"{base.rstrip('/')}/:id"
    specs = {
        FIND_ALL: ("get", base),
        FIND_BY_ID: ("get", item),
        CREATE: ("post", base),
        UPDATE: ("put", item),
        DESTROY: ("delete", item),
    }
    return {
        name: RequestTemplate(
            name=name, method=method, route=route, context=context, connection=connection
        )
        for name, (method, route) in specs.items()
    }


def make_custom_requests(
    requests: Mapping[str, Mapping[str, Any]],
    context: str = "",
    connection: str = "",
) -> dict[str, RequestTemplate]:
    """Build templates from ``{name: {"route": ..., "method": ...}}`` definitions.

    A definition may override ``name``, ``context`` and ``connection``.
    ``method`` defaults to "get".
    """
    templates: dict[str, RequestTemplate] = {}
    for name, definition in requests.items():
        templates[name] = RequestTemplate(
            name=definition.get("name", name),
            method=definition.get("method", "get"),
            route=definition["route"],
            context=definition.get("context", context),
            connection=definition.get("connection", connection),
        )
    return templates
