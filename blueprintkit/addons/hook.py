"""Reactive UI-hook adapter.

`hook(unit)` returns a blueprint whose invocation binds the given props and
returns a `HookState`. Rendering layers read `loading`, `args`, `result` and
`error`, subscribe to change notifications, and call `trigger()` to run the
wrapped blueprint. Errors raised by the blueprint are captured in `error`.

    use_greeting = hook(greeting)
    state = use_greeting({"name": "World"})
    state.subscribe(lambda s: render(s.snapshot()))
    await state.trigger()
    await state.trigger({"name": "Other"})
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

from blueprintkit.engine.addon import Addon
from blueprintkit.engine.pipeline import Blueprint

logger = logging.getLogger(__name__)

Listener = Callable[["HookState"], Any]


class HookState:
    def __init__(self, unit: Callable[[Any], Any], props: Any = None):
        self._unit = unit
        self._props = props
        self._listeners: list[Listener] = []
        self.loading = True
        self.args = props
        self.result: Any = None
        self.error: BaseException | None = None

    def __repr__(self) -> str:
        return f"HookState(loading={self.loading}, result={self.result!r}, error={self.error!r})"

    def snapshot(self) -> dict[str, Any]:
        return {
            "loading": self.loading,
            "args": self.args,
            "result": self.result,
            "error": self.error,
        }

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        if not callable(listener):
            raise TypeError(f"Hook listener must be callable (type={type(listener).__name__})")
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Hook listener failed")

    async def trigger(self, overwrite: Any = None) -> Any:
        args = overwrite if overwrite is not None else self._props
        self.loading = True
        self.args = args
        self.error = None
        self._notify()
        try:
            value = self._unit(args)
            if inspect.isawaitable(value):
                value = await value
            self.result = value
            return value
        except Exception as exc:
            logger.debug("Hook trigger captured error: %s", exc)
            self.error = exc
            return None
        finally:
            self.loading = False
            self._notify()


def hook(unit: Blueprint[Any, Any]) -> Blueprint[Any, Any]:
    return unit.mod(lambda wrapped: lambda props: HookState(wrapped, props))


def _hook(self: Blueprint[Any, Any]) -> Blueprint[Any, Any]:
    return hook(self)


hook_addon = Addon(name="hook", core={"hook": _hook})
