"""Engine primitives for building and invoking Blueprints."""

from blueprintkit.engine.addon import Addon
from blueprintkit.engine.errors import (
    BlueprintError,
    BlueprintNotImplementedError,
    InputValidationError,
    ResultValidationError,
    ValidationFailure,
)
from blueprintkit.engine.patterns import chain, tap, variants
from blueprintkit.engine.pipeline import Blueprint, BlueprintOptions, blueprint
from blueprintkit.engine.recorder import (
    DefaultInvocationRecorder,
    InvocationRecorder,
    NullInvocationRecorder,
)
from blueprintkit.engine.state import BlueprintState, Validator

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
