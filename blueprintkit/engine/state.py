"""Immutable configuration record behind every Blueprint."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Protocol, TypeAlias, runtime_checkable

from .addon import Addon
from .recorder import DefaultInvocationRecorder, InvocationRecorder

DefaultProvider: TypeAlias = Mapping[str, Any] | Callable[[Mapping[str, Any]], Mapping[str, Any]]
InputMapper: TypeAlias = Callable[[Any], Any]
OutputMapper: TypeAlias = Callable[[Any, Any], Any]
BeforeHook: TypeAlias = Callable[[Any], Any]
AfterHook: TypeAlias = Callable[[Any, Any], Any]


@runtime_checkable
class Validator(Protocol):
    def parse(self, value: Any) -> Any:
        ...


def _check_callables(name: str, items: tuple[Any, ...]) -> None:
    for item in items:
        if not callable(item):
            raise TypeError(f"BlueprintState.{name} entries must be callable (type={type(item).__name__})")


@dataclass(frozen=True)
class BlueprintState:
    key: str | None = None
    description: str | None = None
    core: Callable[[Any], Any] | None = None
    input_mappers: tuple[InputMapper, ...] = ()
    output_mappers: tuple[OutputMapper, ...] = ()
    default_providers: tuple[DefaultProvider, ...] = ()
    enforced: Mapping[str, Any] = field(default_factory=dict)
    before_hooks: tuple[BeforeHook, ...] = ()
    after_hooks: tuple[AfterHook, ...] = ()
    is_async: bool = False
    is_void: bool = False
    input_validator: Validator | None = None
    result_validator: Validator | None = None
    validate_input_enabled: bool = False
    validate_result_enabled: bool = False
    addons: tuple[Addon, ...] = ()
    recorder: InvocationRecorder = field(default_factory=DefaultInvocationRecorder)

    def __post_init__(self) -> None:
        if self.key is not None:
            if not isinstance(self.key, str):
                raise TypeError(f"Blueprint key must be a string or None (type={type(self.key).__name__})")
            key = self.key.strip()
            if not key:
                raise ValueError("Blueprint key cannot be empty")
            object.__setattr__(self, "key", key)
        if self.description is not None and not isinstance(self.description, str):
            raise TypeError(
                f"Blueprint description must be a string or None (type={type(self.description).__name__})"
            )
        if self.core is not None and not callable(self.core):
            raise TypeError(f"Blueprint core must be callable (type={type(self.core).__name__})")

        _check_callables("input_mappers", self.input_mappers)
        _check_callables("output_mappers", self.output_mappers)
        _check_callables("before_hooks", self.before_hooks)
        _check_callables("after_hooks", self.after_hooks)
        providers: list[DefaultProvider] = []
        for provider in self.default_providers:
            if isinstance(provider, Mapping):
                provider = MappingProxyType(dict(provider))
            elif not callable(provider):
                raise TypeError(
                    f"Default provider must be a mapping or callable (type={type(provider).__name__})"
                )
            providers.append(provider)
        object.__setattr__(self, "default_providers", tuple(providers))

        if not isinstance(self.enforced, Mapping):
            raise TypeError(f"Enforced values must be a mapping (type={type(self.enforced).__name__})")
        object.__setattr__(self, "enforced", MappingProxyType(dict(self.enforced)))

        for name in ("input_validator", "result_validator"):
            validator = getattr(self, name)
            if validator is not None and not callable(getattr(validator, "parse", None)):
                raise TypeError(f"{name} must expose parse(value) (type={type(validator).__name__})")

        for addon in self.addons:
            if not isinstance(addon, Addon):
                raise TypeError(f"Blueprint addons must be Addon instances (type={type(addon).__name__})")

    def evolve(self, **changes: Any) -> "BlueprintState":
        return dataclasses.replace(self, **changes)

    @property
    def validates_input(self) -> bool:
        return self.input_validator is not None and self.validate_input_enabled

    @property
    def validates_result(self) -> bool:
        return self.result_validator is not None and self.validate_result_enabled

    def needs_record_input(self) -> bool:
        return bool(self.default_providers) or bool(self.enforced)

    def describe(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "description": self.description,
            "implemented": self.core is not None,
            "input_mappers": len(self.input_mappers),
            "output_mappers": len(self.output_mappers),
            "default_providers": len(self.default_providers),
            "enforced": sorted(str(k) for k in self.enforced),
            "before_hooks": len(self.before_hooks),
            "after_hooks": len(self.after_hooks),
            "is_async": self.is_async,
            "is_void": self.is_void,
            "validates_input": self.validates_input,
            "validates_result": self.validates_result,
            "addons": [addon.name for addon in self.addons],
        }
