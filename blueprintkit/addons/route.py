"""FastAPI request handler adapter.

    app = FastAPI()
    app.add_api_route("/hello/{name}", route(hello), methods=["GET"])

The blueprint input is built from the route's path parameters, plus
`{"body": <json>}` for POST/PUT/PATCH requests, plus the query parameters for
GET/DELETE requests. The result (awaited if deferred) is returned as JSON.
Errors raised by the blueprint are not caught here; install FastAPI exception
handlers to map them to responses.
"""

from __future__ import annotations

import inspect
import logging
import re
from typing import Any, Awaitable, Callable

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from blueprintkit.engine.addon import Addon
from blueprintkit.engine.pipeline import Blueprint

logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH")
QUERY_METHODS = ("GET", "DELETE")


async def request_props(request: Request) -> dict[str, Any]:
    props: dict[str, Any] = dict(request.path_params)
    method = request.method.upper()
    if method in BODY_METHODS:
        raw = await request.body()
        props["body"] = await request.json() if raw else None
    if method in QUERY_METHODS:
        props.update(request.query_params.items())
    return props


def route(unit: Blueprint[Any, Any]) -> Callable[[Request], Awaitable[JSONResponse]]:
    if not callable(unit):
        raise TypeError(f"route() expects a blueprint (type={type(unit).__name__})")
    label = getattr(unit, "key", None) or "<anonymous>"

    async def endpoint(request: Request) -> JSONResponse:
        props = await request_props(request)
        logger.debug("Route %s %s -> %s", request.method, request.url.path, label)
        result = unit(props)
        if inspect.isawaitable(result):
            result = await result
        return JSONResponse(content=jsonable_encoder(result))

    endpoint.__name__ = "route_" + re.sub(r"\W+", "_", label).strip("_")
    endpoint.__doc__ = getattr(unit, "description", None)
    return endpoint


def _route(self: Blueprint[Any, Any]) -> Callable[[Request], Awaitable[JSONResponse]]:
    return route(self)


route_addon = Addon(name="route", core={"route": _route})
