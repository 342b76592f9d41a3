from __future__ import annotations

"""Reusable Blueprint composition helpers.

These helpers only use the public chain methods, so they work for any Blueprint
subclass, including ones extended with addons.
"""

from collections.abc import Callable, Mapping
from typing import Any

from blueprintkit.engine.pipeline import Blueprint, blueprint


def chain(
    first: Blueprint[Any, Any] | Callable[[Any], Any],
    *rest: Callable[[Any], Any],
) -> Blueprint[Any, Any]:
    """Pattern: pipe units left to right, awaiting deferred results between them."""

    head = first if isinstance(first, Blueprint) else blueprint(first)
    for unit in rest:
        head = head.pipe(unit)
    return head


def variants(
    base: Blueprint[Any, Any],
    overrides: Mapping[str, Mapping[str, Any]],
) -> dict[str, Blueprint[Any, Any]]:
    """Pattern: derive one keyed blueprint per set of enforced values from a shared template."""

    if not isinstance(overrides, Mapping):
        raise TypeError("overrides must be a mapping of name -> enforced values")

    derived: dict[str, Blueprint[Any, Any]] = {}
    for name, values in overrides.items():
        if not isinstance(name, str) or not name.strip():
            raise TypeError("variant names must be non-empty strings")
        label = name.strip()
        key = f"{base.key}.{label}" if base.key else label
        derived[label] = base.enforce(values).with_identity(key=key)
    return derived


def tap(*effects: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Pattern: a pipe stage that runs side effects and passes its value through."""

    def run(value: Any) -> Any:
        for effect in effects:
            effect(value)
        return value

    return run
