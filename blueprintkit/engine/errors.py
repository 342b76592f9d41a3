"""Exception types raised by blueprint invocation."""

from __future__ import annotations

from typing import Any


class BlueprintError(Exception):
    """Base class for failures originating in the blueprint engine itself."""


class BlueprintNotImplementedError(BlueprintError, NotImplementedError):
    def __init__(self, key: str | None = None):
        self.key = key
        label = key or "<anonymous>"
        super().__init__(f"Blueprint {label} is not implemented")


class ValidationFailure(BlueprintError):
    """A validator rejected a value.

    `detail` carries the validator's structured failure description (for pydantic
    validators this is the `errors()` list); the validator's own exception is
    chained as `__cause__`.
    """

    stage = "validate"

    def __init__(self, message: str, *, detail: Any = None, key: str | None = None):
        super().__init__(message)
        self.detail = detail
        self.key = key


class InputValidationError(ValidationFailure):
    stage = "validate_input"


class ResultValidationError(ValidationFailure):
    stage = "validate_result"


def failure_detail(exc: BaseException) -> Any:
    errors = getattr(exc, "errors", None)
    if callable(errors):
        try:
            return errors()
        except Exception:  # noqa: BLE001
            return str(exc)
    return str(exc)


def attach_blueprint_context(exc: BaseException, *, key: str | None, stage: str) -> None:
    """Annotate an exception in place; innermost annotations are kept."""

    if not hasattr(exc, "blueprint_stage"):
        try:
            setattr(exc, "blueprint_stage", stage)
        except Exception:  # noqa: BLE001
            return
    if not hasattr(exc, "blueprint_key"):
        try:
            setattr(exc, "blueprint_key", key)
        except Exception:  # noqa: BLE001
            pass
