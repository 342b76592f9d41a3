"""Late-implemented, chainable function blueprints.

A blueprint is a callable assembled from immutable configuration: core logic,
defaults, enforced values, input/output transforms, validators, hooks and
async/void conversion. Every chain method returns a new blueprint.

This package must not import its adapters' third-party dependencies (pydantic,
requests, fastapi); those live in `blueprintkit.addons.*`.
"""

from blueprintkit.engine import (
    Addon,
    Blueprint,
    BlueprintError,
    BlueprintNotImplementedError,
    BlueprintOptions,
    BlueprintState,
    DefaultInvocationRecorder,
    InputValidationError,
    InvocationRecorder,
    NullInvocationRecorder,
    ResultValidationError,
    ValidationFailure,
    Validator,
    blueprint,
    chain,
    tap,
    variants,
)

__all__ = [
    "Addon",
    "Blueprint",
    "BlueprintError",
    "BlueprintNotImplementedError",
    "BlueprintOptions",
    "BlueprintState",
    "DefaultInvocationRecorder",
    "InputValidationError",
    "InvocationRecorder",
    "NullInvocationRecorder",
    "ResultValidationError",
    "ValidationFailure",
    "Validator",
    "blueprint",
    "chain",
    "tap",
    "variants",
]
