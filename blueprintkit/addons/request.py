"""HTTP request addon: implement a blueprint by calling a JSON endpoint.

The blueprint's validated input supplies the request:

    {"method": "POST", "body": {...}, "query": {...}}

`method` defaults to GET, `body` is sent as JSON and `query` as URL parameters.
A pydantic model (the default output of `props_schema`) is dumped to a dict first.
The parsed JSON response becomes the core result, so defaults, enforced values,
validators and hooks configured before `.request(...)` still apply.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import requests
from pydantic import BaseModel

from blueprintkit.config import RequestSettings
from blueprintkit.engine.addon import Addon
from blueprintkit.engine.pipeline import Blueprint

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


def send_json_request(
    url: str,
    props: Any,
    *,
    session: Any = None,
    settings: RequestSettings | None = None,
) -> Any:
    if not isinstance(url, str) or not url.strip():
        raise ValueError("Request url must be a non-empty string")
    settings = settings or RequestSettings()
    if props is None:
        props = {}
    elif isinstance(props, BaseModel):
        props = props.model_dump()
    elif not isinstance(props, Mapping):
        raise TypeError(f"Request input must be a mapping or pydantic model (type={type(props).__name__})")

    method = str(props.get("method") or "GET").upper()
    body = props.get("body")
    query = props.get("query")
    if query is not None and not isinstance(query, Mapping):
        raise TypeError(f"Request query must be a mapping (type={type(query).__name__})")

    headers = {**settings.headers, **JSON_HEADERS}
    data = json.dumps(body) if body is not None else None

    client = session if session is not None else requests
    logger.debug("Request: %s %s", method, url)
    try:
        response = client.request(
            method,
            url.strip(),
            data=data,
            params=dict(query) if query else None,
            headers=headers,
            timeout=settings.timeout,
        )
        response.raise_for_status()
    except requests.exceptions.RequestException:
        logger.exception("Request failed: %s %s", method, url)
        raise
    return response.json()


def _request(
    self: Blueprint[Any, Any],
    url: str,
    *,
    session: Any = None,
    settings: RequestSettings | None = None,
) -> Blueprint[Any, Any]:
    def implement(unit: Blueprint[Any, Any]) -> Blueprint[Any, Any]:
        return unit.implement(
            lambda props: send_json_request(url, props, session=session, settings=settings)
        )

    return self.mod(implement)


request_addon = Addon(
    name="request",
    core={"request": _request},
    doc="Blueprint implemented by a JSON HTTP request.",
)
