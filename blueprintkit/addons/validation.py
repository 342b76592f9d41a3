"""Schema validation addon backed by pydantic.

Any pydantic model class, or any type pydantic can build a `TypeAdapter` for, is
turned into a validator exposing `parse(value)`. Objects that already expose
`parse` are used unchanged.

    from blueprintkit import blueprint
    from blueprintkit.addons.validation import validation_addon

    greet = (
        blueprint(lambda props: f"Hello, {props.name}!", key="greet")
        .addon(validation_addon)
        .props_schema(Greeting)
        .result_schema(str)
    )
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, TypeAdapter

from blueprintkit.engine.addon import Addon
from blueprintkit.engine.pipeline import Blueprint


class PydanticValidator:
    def __init__(self, schema: Any, *, dump: bool = False):
        self.schema = schema
        self.dump = dump
        self._adapter: TypeAdapter[Any] = TypeAdapter(schema)

    def __repr__(self) -> str:
        name = getattr(self.schema, "__name__", None) or repr(self.schema)
        return f"PydanticValidator({name})"

    def parse(self, value: Any) -> Any:
        parsed = self._adapter.validate_python(value)
        if self.dump and isinstance(parsed, BaseModel):
            return parsed.model_dump()
        return parsed


def as_validator(schema: Any, *, dump: bool = False) -> Any:
    """Coerce a pydantic model, type annotation or parse-capable object into a validator."""

    if schema is None:
        raise TypeError("Validator schema cannot be None")
    if not isinstance(schema, type) and callable(getattr(schema, "parse", None)):
        return schema
    return PydanticValidator(schema, dump=dump)


def _schemas(
    self: Blueprint[Any, Any],
    props: Any = None,
    result: Any = None,
    *,
    dump: bool = False,
) -> Blueprint[Any, Any]:
    unit = self
    if props is not None:
        unit = unit.validate_input(as_validator(props, dump=dump))
    if result is not None:
        unit = unit.validate_result(as_validator(result, dump=dump))
    return unit


def _props_schema(self: Blueprint[Any, Any], schema: Any, *, dump: bool = False) -> Blueprint[Any, Any]:
    return self.validate_input(as_validator(schema, dump=dump))


def _result_schema(self: Blueprint[Any, Any], schema: Any, *, dump: bool = False) -> Blueprint[Any, Any]:
    return self.validate_result(as_validator(schema, dump=dump))


validation_addon = Addon(
    name="validation",
    core={
        "schemas": _schemas,
        "props_schema": _props_schema,
        "result_schema": _result_schema,
    },
    doc="Blueprint with pydantic-backed input/result validation.",
)
