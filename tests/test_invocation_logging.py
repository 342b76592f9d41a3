import logging

import pytest

from blueprintkit import NullInvocationRecorder, blueprint
from blueprintkit.engine.recorder import DefaultInvocationRecorder, callable_source, json_safe


def bad_mapper(props):
    raise KeyError("missing_field")


def test_failures_are_logged_with_stage_and_offending_value(caplog):
    unit = blueprint(lambda props: props, key="orders.create").input(bad_mapper)

    with caplog.at_level(logging.ERROR, logger="blueprintkit"):
        with pytest.raises(KeyError):
            unit({"sku": "A-1"})

    messages = [record.getMessage() for record in caplog.records]
    assert any("Blueprint failed: orders.create" in m for m in messages)
    assert any("stage=input" in m and '"sku": "A-1"' in m for m in messages)
    assert any("bad_mapper" in m for m in messages)


def test_exceptions_are_annotated_not_wrapped():
    def core(props):
        raise ValueError("core broke")

    unit = blueprint(core, key="k")

    with pytest.raises(ValueError) as excinfo:
        unit({})

    assert type(excinfo.value) is ValueError
    assert excinfo.value.blueprint_stage == "core"
    assert excinfo.value.blueprint_key == "k"


def test_innermost_stage_annotation_is_kept_through_pipe():
    def explode(value):
        raise RuntimeError("inner")

    inner = blueprint(lambda props: props, key="inner").output(lambda result, props: explode(result))
    outer = blueprint(lambda props: props, key="outer").pipe(inner)

    with pytest.raises(RuntimeError) as excinfo:
        outer({})

    assert excinfo.value.blueprint_stage == "output"
    assert excinfo.value.blueprint_key == "inner"


def test_debug_records_start_and_end(caplog):
    unit = blueprint(lambda props: props["a"] * 3, key="triple")

    with caplog.at_level(logging.DEBUG, logger="blueprintkit"):
        unit({"a": 2})

    messages = [record.getMessage() for record in caplog.records]
    assert 'Invoke: triple (props={"a": 2})' in messages
    assert "Completed triple (result=6)" in messages


def test_null_recorder_is_silent(caplog):
    unit = blueprint(lambda props: 1 / 0).with_recorder(NullInvocationRecorder())

    with caplog.at_level(logging.DEBUG, logger="blueprintkit"):
        with pytest.raises(ZeroDivisionError):
            unit({})

    assert caplog.records == []


def test_broken_recorder_does_not_mask_the_original_error(caplog):
    class BrokenRecorder(NullInvocationRecorder):
        def on_stage_error(self, key, stage, *, value, source, exc):
            raise RuntimeError("recorder bug")

    unit = blueprint(lambda props: 1 / 0, key="div").with_recorder(BrokenRecorder())

    with pytest.raises(ZeroDivisionError):
        unit({})
    assert any("Invocation recorder failed" in r.getMessage() for r in caplog.records)


def test_custom_logger_and_preview_limits(caplog):
    log = logging.getLogger("tests.blueprint.custom")
    recorder = DefaultInvocationRecorder(log=log, max_items=2)
    unit = blueprint(key="lists").with_recorder(recorder)

    with caplog.at_level(logging.ERROR, logger="tests.blueprint.custom"):
        with pytest.raises(NotImplementedError):
            unit([1, 2, 3, 4])

    assert any("<2 more>" in record.getMessage() for record in caplog.records)


def test_json_safe_and_callable_source():
    class Opaque:
        def __repr__(self):
            return "<opaque>"

    assert json_safe({"a": (1, Opaque())}) == {"a": [1, "<opaque>"]}
    assert json_safe([[[[[1]]]]], max_depth=2) == [["<max_depth>"]]
    assert callable_source(bad_mapper) == f"{__name__}.bad_mapper"
    assert callable_source(42) is None


def test_piped_failure_is_logged_once_by_the_inner_blueprint(caplog):
    def explode(value):
        raise RuntimeError("inner")

    inner = blueprint(explode, key="inner")
    outer = blueprint(lambda props: props, key="outer").pipe(inner)

    with caplog.at_level(logging.ERROR, logger="blueprintkit"):
        with pytest.raises(RuntimeError):
            outer({})

    failures = [r.getMessage() for r in caplog.records if "Blueprint failed" in r.getMessage()]
    assert len(failures) == 1
    assert "Blueprint failed: inner" in failures[0]
