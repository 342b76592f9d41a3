import pytest

from blueprintkit import Addon, Blueprint, blueprint


def _shouting(self):
    return self.output(lambda result, props: str(result).upper())


def _tagged(self, tag):
    return self.output(lambda result, props: f"[{tag}] {result}")


shout_addon = Addon(name="shout", core={"shouting": _shouting, "volume": "loud"})
tag_addon = Addon(name="tag", core={"tagged": _tagged})


def greet(props):
    return f"hello {props['name']}"


def test_addon_members_are_bound_to_the_blueprint():
    unit = blueprint(greet).addon(shout_addon)

    assert unit.volume == "loud"
    assert unit.shouting()({"name": "ada"}) == "HELLO ADA"


def test_addon_is_recorded_and_receiver_is_untouched():
    base = blueprint(greet)
    extended = base.addon(shout_addon)

    assert extended is not base
    assert extended.addons == (shout_addon,)
    assert base.addons == ()
    assert not hasattr(base, "shouting")
    assert isinstance(extended, Blueprint)


def test_addon_methods_survive_later_chain_calls():
    unit = (
        blueprint(key="greeter")
        .addon(shout_addon)
        .addon(tag_addon)
        .defaults({"name": "world"})
        .implement(greet)
        .tagged("x")
    )

    assert unit.shouting()({}) == "[X] HELLO WORLD"


def test_most_recently_attached_addon_wins_collisions():
    first = Addon(name="first", core={"label": lambda self: "first"})
    second = Addon(name="second", core={"label": lambda self: "second"})

    assert blueprint(greet).addon(first).addon(second).label() == "second"
    assert blueprint(greet).addon(second).addon(first).label() == "first"


def test_addon_may_override_base_interface():
    loud_void = Addon(name="loud_void", core={"to_void": lambda self: self.output(lambda r, p: "VOID")})

    unit = blueprint(greet).addon(loud_void).to_void()

    assert unit({"name": "x"}) == "VOID"


def test_mod_and_pipe_keep_addons():
    unit = blueprint(greet).addon(shout_addon)

    assert unit.mod(lambda inner: lambda props: inner(props)).volume == "loud"
    assert unit.pipe(lambda value: value).shouting()({"name": "b"}) == "HELLO B"


def test_addons_from_factory_options_are_applied_in_order():
    unit = blueprint(greet, addons=[tag_addon, shout_addon])

    assert [addon.name for addon in unit.addons] == ["tag", "shout"]
    assert unit.tagged("t").shouting()({"name": "z"}) == "[T] HELLO Z"


def test_addon_rejects_reserved_and_invalid_members():
    with pytest.raises(ValueError, match="reserved member"):
        Addon(name="bad", core={"__call__": lambda self, props: None})
    with pytest.raises(ValueError, match="invalid member name"):
        Addon(name="bad", core={"not valid": 1})
    with pytest.raises(TypeError, match="non-empty string"):
        Addon(name=" ", core={})


def test_addon_requires_addon_instance():
    with pytest.raises(TypeError, match="must be an Addon"):
        blueprint(greet).addon({"core": {}})  # type: ignore[arg-type]


def test_same_addon_reuses_derived_class():
    a = blueprint(greet).addon(shout_addon)
    b = blueprint(lambda props: "other").addon(shout_addon)

    assert type(a) is type(b)
    assert type(a).__name__ == "Blueprint[shout]"


def test_derived_class_cache_does_not_keep_dynamic_addons_alive():
    import gc
    import weakref

    dynamic = Addon(name="dynamic", core={"ping": lambda self: "pong"})
    unit = blueprint(greet).addon(dynamic)
    assert unit.ping() == "pong"

    ref = weakref.ref(dynamic)
    del dynamic, unit
    gc.collect()

    assert ref() is None
