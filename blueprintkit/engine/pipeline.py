"""The Blueprint callable and its invocation protocol.

This module is intentionally library-agnostic: it must not import pydantic,
requests, fastapi or any other adapter dependency. Validators are anything with a
`parse(value)` method.

Invocation runs the same stages on every call:

    defaults -> enforce -> input -> validate_input -> before -> core
    -> (await) -> output -> validate_result -> after -> void
"""

from __future__ import annotations

import inspect
import logging
import weakref
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from .addon import Addon
from .errors import (
    BlueprintNotImplementedError,
    InputValidationError,
    ResultValidationError,
    ValidationFailure,
    attach_blueprint_context,
    failure_detail,
)
from .recorder import InvocationRecorder, callable_source
from .state import (
    AfterHook,
    BeforeHook,
    BlueprintState,
    DefaultProvider,
    InputMapper,
    OutputMapper,
    Validator,
)

logger = logging.getLogger(__name__)

P = TypeVar("P")
R = TypeVar("R")
B = TypeVar("B", bound="Blueprint[Any, Any]")

_UNSET: Any = object()

# addon -> {base class: derived class}; entries go away with the addon.
_derived_classes: "weakref.WeakKeyDictionary[Addon, dict[type, type]]" = weakref.WeakKeyDictionary()


def _derive_class(base: type, addon: Addon) -> type:
    by_base = _derived_classes.setdefault(addon, {})
    cached = by_base.get(base)
    if cached is not None:
        return cached

    namespace: dict[str, Any] = dict(addon.core)
    namespace["__module__"] = base.__module__
    if addon.doc and "__doc__" not in namespace:
        namespace["__doc__"] = addon.doc
    derived = type(f"{base.__name__}[{addon.name}]", (base,), namespace)
    by_base[base] = derived
    return derived


class Blueprint(Generic[P, R]):
    """A late-implemented callable assembled from chained configuration.

    Every chain method returns a new Blueprint of the same class backed by a new
    `BlueprintState`; the receiver keeps working exactly as before, so a base
    blueprint can serve as a template for several specialisations.
    """

    __slots__ = ("_state",)

    def __init__(self, state: BlueprintState | None = None):
        if state is None:
            state = BlueprintState()
        if not isinstance(state, BlueprintState):
            raise TypeError(f"Blueprint state must be a BlueprintState (type={type(state).__name__})")
        object.__setattr__(self, "_state", state)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(
            f"{type(self).__name__} is immutable; use a chain method to derive a new blueprint"
        )

    def __repr__(self) -> str:
        label = self._state.key or "<anonymous>"
        return f"<{type(self).__name__} {label}>"

    @property
    def state(self) -> BlueprintState:
        return self._state

    @property
    def key(self) -> str | None:
        return self._state.key

    @property
    def description(self) -> str | None:
        return self._state.description

    @property
    def addons(self) -> tuple[Addon, ...]:
        return self._state.addons

    def _derive(self: B, **changes: Any) -> B:
        return type(self)(self._state.evolve(**changes))

    def _fresh(self: B, core: Callable[[Any], Any], **changes: Any) -> B:
        state = self._state
        return type(self)(
            BlueprintState(
                key=state.key,
                description=state.description,
                core=core,
                addons=state.addons,
                recorder=state.recorder,
                **changes,
            )
        )

    # -- chain methods -------------------------------------------------------------

    def implement(self: B, logic: Callable[[Any], Any]) -> B:
        if not callable(logic):
            raise TypeError(f"Blueprint implementation must be callable (type={type(logic).__name__})")
        return self._derive(core=logic)

    def mod(self: B, factory: Callable[[B], Callable[[Any], Any]]) -> B:
        """Wrap this blueprint.

        `factory` receives this blueprint. A Blueprint it returns is used as-is; a
        plain callable becomes the core of a new, otherwise unconfigured blueprint
        that keeps this blueprint's identity, addons and recorder.
        """

        if not callable(factory):
            raise TypeError(f"Blueprint mod factory must be callable (type={type(factory).__name__})")
        produced = factory(self)
        if isinstance(produced, Blueprint):
            return produced  # type: ignore[return-value]
        if not callable(produced):
            raise TypeError(
                f"Blueprint mod factory must return a callable (type={type(produced).__name__})"
            )
        return self._fresh(produced)

    def input(self: B, transform: InputMapper) -> B:
        if not callable(transform):
            raise TypeError(f"Input transform must be callable (type={type(transform).__name__})")
        return self._derive(input_mappers=(transform, *self._state.input_mappers))

    def defaults(self: B, provider: DefaultProvider) -> B:
        return self._derive(default_providers=(*self._state.default_providers, provider))

    def enforce(self: B, values: Mapping[str, Any]) -> B:
        if not isinstance(values, Mapping):
            raise TypeError(f"Enforced values must be a mapping (type={type(values).__name__})")
        return self._derive(enforced={**self._state.enforced, **values})

    def output(self: B, transform: OutputMapper) -> B:
        if not callable(transform):
            raise TypeError(f"Output transform must be callable (type={type(transform).__name__})")
        return self._derive(output_mappers=(*self._state.output_mappers, transform))

    def before(self: B, effect: BeforeHook) -> B:
        return self._derive(before_hooks=(*self._state.before_hooks, effect))

    def after(self: B, effect: AfterHook) -> B:
        return self._derive(after_hooks=(*self._state.after_hooks, effect))

    def to_async(self: B) -> B:
        return self._derive(is_async=True)

    def to_void(self: B) -> B:
        return self._derive(is_void=True)

    def validate_input(self: B, validator: Validator) -> B:
        return self._derive(input_validator=validator, validate_input_enabled=True)

    def validate_result(self: B, validator: Validator) -> B:
        return self._derive(result_validator=validator, validate_result_enabled=True)

    def validation(self: B, *, input: bool | None = None, result: bool | None = None) -> B:
        changes: dict[str, bool] = {}
        if input is not None:
            changes["validate_input_enabled"] = bool(input)
        if result is not None:
            changes["validate_result_enabled"] = bool(result)
        return self._derive(**changes)

    def with_identity(self: B, *, key: str | None = _UNSET, description: str | None = _UNSET) -> B:
        changes: dict[str, Any] = {}
        if key is not _UNSET:
            changes["key"] = key
        if description is not _UNSET:
            changes["description"] = description
        return self._derive(**changes)

    def with_recorder(self: B, recorder: InvocationRecorder) -> B:
        return self._derive(recorder=recorder)

    def pipe(self: B, next_unit: Callable[[Any], Any]) -> B:
        """Feed this blueprint's (awaited) result into `next_unit`.

        The composed blueprint starts with no mappers, hooks or validators of its
        own; it inherits the async/void flags of this blueprint.
        """

        if not callable(next_unit):
            raise TypeError(f"Piped unit must be callable (type={type(next_unit).__name__})")
        head = self

        def piped(props: Any) -> Any:
            value = head(props)
            if inspect.isawaitable(value):
                return _pipe_awaited(value, next_unit)
            return next_unit(value)

        return self._fresh(piped, is_async=self._state.is_async, is_void=self._state.is_void)

    def addon(self, bundle: Addon) -> "Blueprint[P, R]":
        """Attach a capability bundle; the most recently attached member wins."""

        if not isinstance(bundle, Addon):
            raise TypeError(f"Blueprint addon must be an Addon (type={type(bundle).__name__})")
        derived = _derive_class(type(self), bundle)
        return derived(self._state.evolve(addons=(*self._state.addons, bundle)))

    # -- invocation ----------------------------------------------------------------

    def __call__(self, props: P = None) -> R:  # type: ignore[assignment]
        state = self._state
        state.recorder.on_invoke_start(state.key, props)

        if not state.is_async:
            validated = self._prepare(props)
            raw = self._run_core(validated)
            if inspect.isawaitable(raw):
                return self._settle(raw, validated)  # type: ignore[return-value]
            return self._finish(raw, validated)

        try:
            validated = self._prepare(props)
            raw = self._run_core(validated)
        except Exception as exc:
            return _rejected(exc)  # type: ignore[return-value]
        return self._settle(raw, validated)  # type: ignore[return-value]

    def _record_failure(self, exc: BaseException, *, stage: str, value: Any, source: str | None) -> None:
        state = self._state
        if hasattr(exc, "blueprint_stage"):
            # Already recorded by the blueprint it was raised in.
            return
        try:
            state.recorder.on_stage_error(state.key, stage, value=value, source=source, exc=exc)
        except Exception:
            logger.exception(
                "Invocation recorder failed during error handling for %s", state.key or "<anonymous>"
            )
        attach_blueprint_context(exc, key=state.key, stage=stage)

    def _resolve_input(self, props: Any) -> Any:
        state = self._state
        if not state.needs_record_input():
            return props

        if props is None:
            base: Mapping[str, Any] = {}
        elif isinstance(props, Mapping):
            base = props
        else:
            raise TypeError(
                f"Blueprint {state.key or '<anonymous>'} cannot apply defaults or enforced values "
                f"to non-mapping input (type={type(props).__name__})"
            )

        resolved: dict[str, Any] = {}
        for provider in state.default_providers:
            if isinstance(provider, Mapping):
                supplied = provider
            else:
                supplied = provider({**resolved, **base})
                if supplied is None:
                    continue
                if not isinstance(supplied, Mapping):
                    raise TypeError(
                        f"Default provider {callable_source(provider)} returned non-mapping "
                        f"(type={type(supplied).__name__})"
                    )
            resolved.update(supplied)

        merged = {**resolved, **base}
        merged.update(state.enforced)
        return merged

    def _validate(self, validator: Validator, value: Any, error_cls: type[ValidationFailure]) -> Any:
        state = self._state
        try:
            return validator.parse(value)
        except ValidationFailure:
            raise
        except Exception as exc:
            label = "Input" if error_cls is InputValidationError else "Result"
            raise error_cls(
                f"{label} validation failed for blueprint {state.key or '<anonymous>'}: {exc}",
                detail=failure_detail(exc),
                key=state.key,
            ) from exc

    def _prepare(self, props: Any) -> Any:
        state = self._state
        stage: str = "defaults"
        source: str | None = None
        value: Any = props
        try:
            value = self._resolve_input(props)

            for mapper in state.input_mappers:
                stage, source = "input", callable_source(mapper)
                value = mapper(value)

            if state.validates_input:
                stage = "validate_input"
                source = callable_source(getattr(state.input_validator, "parse", None))
                value = self._validate(state.input_validator, value, InputValidationError)  # type: ignore[arg-type]

            for hook in state.before_hooks:
                stage, source = "before", callable_source(hook)
                hook(value)
        except Exception as exc:
            self._record_failure(exc, stage=stage, value=value, source=source)
            raise
        return value

    def _run_core(self, validated: Any) -> Any:
        state = self._state
        core = state.core
        if core is None:
            missing = BlueprintNotImplementedError(state.key)
            self._record_failure(missing, stage="core", value=validated, source=None)
            raise missing
        try:
            return core(validated)
        except Exception as exc:
            self._record_failure(exc, stage="core", value=validated, source=callable_source(core))
            raise

    async def _settle(self, raw: Any, validated: Any) -> Any:
        if inspect.isawaitable(raw):
            try:
                raw = await raw
            except Exception as exc:
                self._record_failure(
                    exc, stage="core", value=validated, source=callable_source(self._state.core)
                )
                raise
        return self._finish(raw, validated)

    def _finish(self, raw: Any, validated: Any) -> Any:
        state = self._state
        stage: str = "output"
        source: str | None = None
        value: Any = raw
        try:
            for mapper in state.output_mappers:
                stage, source = "output", callable_source(mapper)
                value = mapper(value, validated)

            if state.validates_result:
                stage = "validate_result"
                source = callable_source(getattr(state.result_validator, "parse", None))
                value = self._validate(state.result_validator, value, ResultValidationError)  # type: ignore[arg-type]

            for hook in state.after_hooks:
                stage, source = "after", callable_source(hook)
                hook(value, validated)
        except Exception as exc:
            self._record_failure(exc, stage=stage, value=value, source=source)
            raise

        result = None if state.is_void else value
        state.recorder.on_invoke_end(state.key, result)
        return result


async def _pipe_awaited(pending: Any, next_unit: Callable[[Any], Any]) -> Any:
    value = await pending
    out = next_unit(value)
    if inspect.isawaitable(out):
        out = await out
    return out


async def _rejected(exc: BaseException) -> Any:
    raise exc


@dataclass(frozen=True)
class BlueprintOptions:
    key: str | None = None
    description: str | None = None
    init: Callable[[Any], Any] | None = None
    addons: tuple[Addon, ...] = ()
    recorder: InvocationRecorder | None = None


def blueprint(
    core: Callable[[Any], Any] | BlueprintOptions | Mapping[str, Any] | None = None,
    *,
    key: str | None = None,
    description: str | None = None,
    addons: tuple[Addon, ...] | list[Addon] = (),
    recorder: InvocationRecorder | None = None,
) -> Blueprint[Any, Any]:
    """Create a Blueprint from a core function, a `BlueprintOptions`, or an options mapping.

    Keyword arguments override values from an options record.
    """

    if isinstance(core, Mapping):
        core = BlueprintOptions(**core)
    if isinstance(core, BlueprintOptions):
        options = core
        init = options.init
        key = key if key is not None else options.key
        description = description if description is not None else options.description
        addons = (*options.addons, *addons)
        recorder = recorder if recorder is not None else options.recorder
    else:
        init = core

    state_kwargs: dict[str, Any] = {"key": key, "description": description, "core": init}
    if recorder is not None:
        state_kwargs["recorder"] = recorder

    unit: Blueprint[Any, Any] = Blueprint(BlueprintState(**state_kwargs))
    for bundle in addons:
        unit = unit.addon(bundle)
    return unit
