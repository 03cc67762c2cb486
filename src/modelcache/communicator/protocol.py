"""Request-execution protocol consumed by models.

Transport (HTTP, WebSocket, ...) lives behind this interface. A model only
builds ``Request`` descriptors and awaits their decoded responses.

Usage:
    class HttpCommunicator:
        async def request(self, request: Request) -> Any:
            response = await client.request(request.method, request.route, json=request.body)
            response.raise_for_status()
            return response.json()
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

_ROUTE_PARAM = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


@dataclass(frozen=True, slots=True)
class Request:
    """A fully resolved request, ready for execution.

    Attributes:
        name: Request name (e.g. "find_by_id", "login").
        method: HTTP-style verb in lower case.
        route: Route with parameters substituted.
        body: Payload sent with the request, if any.
        context: Name of the model issuing the request.
        connection: Name of the connection to execute on.
        params: Parameters used to resolve the route.
    """

    name: str
    method: str
    route: str
    body: Any = None
    context: str = ""
    connection: str = ""
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RequestTemplate:
    """Request definition with a ``:param`` route template.

    Attributes:
        name: Request name.
        method: HTTP-style verb.
        route: Route template such as ``/user/:id``.
        context: Name of the owning model.
        connection: Connection the request runs on.
    """

    name: str
    method: str
    route: str
    context: str = ""
    connection: str = ""

    @property
    def route_params(self) -> tuple[str, ...]:
        """Names of the ``:param`` placeholders in the route."""
        return tuple(_ROUTE_PARAM.findall(self.route))

    def bind(self, params: Mapping[str, Any] | None = None, body: Any = None) -> Request:
        """Resolve the route with ``params`` and attach ``body``.

        Raises:
            KeyError: If a route placeholder has no value in ``params``.
        """
        values = dict(params or {})

        def substitute(match: re.Match[str]) -> str:
            key = match.group(1)
            if key not in values:
                raise KeyError(f"Request '{self.name}' is missing route parameter '{key}'")
            return str(values[key])

        return Request(
            name=self.name,
            method=self.method.lower(),
            route=_ROUTE_PARAM.sub(substitute, self.route),
            body=body,
            context=self.context,
            connection=self.connection,
            params=values,
        )


@runtime_checkable
class Communicator(Protocol):
    """Executes requests and resolves with decoded response data.

    Implementations raise on transport or server failure; models never catch
    these errors.
    """

    async def request(self, request: Request) -> Any:
        """Execute ``request`` and return the decoded response."""
        ...


class CommunicatorError(Exception):
    """Raised by communicators when a request fails on the server side."""

    def __init__(self, message: str, request: Request | None = None) -> None:
        super().__init__(message)
        self.request = request


class RequestNotFoundError(CommunicatorError):
    """Raised when the addressed record does not exist on the server."""

    pass


class UnknownRequestError(KeyError):
    """Raised when a model is asked to run a request it does not define."""

    pass
