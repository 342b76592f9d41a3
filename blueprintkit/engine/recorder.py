"""Observers notified as a Blueprint invocation moves through its stages."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

logger = logging.getLogger("blueprintkit.invoke")


def callable_source(fn: Any) -> str | None:
    if not callable(fn):
        return None
    module = getattr(fn, "__module__", None) or "<unknown_module>"
    qualname = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", None) or "<callable>"
    return f"{module}.{qualname}"


def json_safe(value: Any, *, max_depth: int = 4, max_items: int = 25) -> Any:
    if max_depth <= 0:
        return "<max_depth>"
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple)):
        items = list(value)
        out = [json_safe(item, max_depth=max_depth - 1, max_items=max_items) for item in items[:max_items]]
        if len(items) > max_items:
            out.append(f"<{len(items) - max_items} more>")
        return out
    if isinstance(value, dict):
        mapped: dict[str, Any] = {}
        for idx, (k, v) in enumerate(value.items()):
            if idx >= max_items:
                mapped["<more>"] = f"<{len(value) - max_items} more>"
                break
            mapped[str(k)] = json_safe(v, max_depth=max_depth - 1, max_items=max_items)
        return mapped
    return repr(value)


class InvocationRecorder(Protocol):
    def on_invoke_start(self, key: str | None, props: Any) -> None:
        ...

    def on_invoke_end(self, key: str | None, result: Any) -> None:
        ...

    def on_stage_error(
        self,
        key: str | None,
        stage: str,
        *,
        value: Any,
        source: str | None,
        exc: BaseException,
    ) -> None:
        ...


class DefaultInvocationRecorder:
    def __init__(
        self,
        *,
        log: logging.Logger | None = None,
        max_depth: int = 4,
        max_items: int = 25,
    ):
        self.log = log or logger
        self.max_depth = max_depth
        self.max_items = max_items

    def _preview(self, value: Any) -> str:
        safe = json_safe(value, max_depth=self.max_depth, max_items=self.max_items)
        return json.dumps(safe, ensure_ascii=False, default=repr)

    def on_invoke_start(self, key: str | None, props: Any) -> None:
        if self.log.isEnabledFor(logging.DEBUG):
            self.log.debug("Invoke: %s (props=%s)", key or "<anonymous>", self._preview(props))

    def on_invoke_end(self, key: str | None, result: Any) -> None:
        if self.log.isEnabledFor(logging.DEBUG):
            self.log.debug("Completed %s (result=%s)", key or "<anonymous>", self._preview(result))

    def on_stage_error(
        self,
        key: str | None,
        stage: str,
        *,
        value: Any,
        source: str | None,
        exc: BaseException,
    ) -> None:
        tokens = [f"stage={stage}"]
        if source:
            tokens.append(f"source={source}")
        tokens.append(f"value={self._preview(value)}")
        self.log.error("Blueprint failed: %s (%s): %s", key or "<anonymous>", ", ".join(tokens), exc)


class NullInvocationRecorder:
    def on_invoke_start(self, key: str | None, props: Any) -> None:
        return

    def on_invoke_end(self, key: str | None, result: Any) -> None:
        return

    def on_stage_error(
        self,
        key: str | None,
        stage: str,
        *,
        value: Any,
        source: str | None,
        exc: BaseException,
    ) -> None:
        return
