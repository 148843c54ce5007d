from __future__ import annotations

import pytest

from compare_test.config import DEFAULT_CONFIG_NAME, Configuration, Template
from tests.support.harness import parse


def _template(name: str, *params: str) -> Template:
    section, _ = parse("run { result = 1; }")
    return Template(name, params, section)


def test_defaults() -> None:
    config = Configuration()
    assert config.name == DEFAULT_CONFIG_NAME
    assert config.lookup("anything") is None
    assert config.get_template("anything") is None


def test_lookup() -> None:
    config = Configuration("debug", {"cc": "gcc"})
    assert config.lookup("cc") == "gcc"
    assert config.lookup("CC") is None


def test_variables_are_read_only() -> None:
    config = Configuration("debug", {"cc": "gcc"})
    with pytest.raises(TypeError):
        config.variables["cc"] = "clang"  # type: ignore[index]


def test_source_mapping_is_copied() -> None:
    source = {"cc": "gcc"}
    config = Configuration("debug", source)
    source["cc"] = "clang"
    assert config.lookup("cc") == "gcc"


def test_with_variable_leaves_original_untouched() -> None:
    base = Configuration("debug", {"cc": "gcc"})
    derived = base.with_variable("cc", "clang")

    assert base.lookup("cc") == "gcc"
    assert derived.lookup("cc") == "clang"
    assert derived.name == "debug"


def test_create_subconfiguration_renames_and_overrides() -> None:
    base = Configuration("default", {"cc": "gcc", "opt": "-O0"}).with_template(_template("t", "a"))
    sub = base.create_subconfiguration("release", {"opt": "-O2", "extra": "1"})

    assert sub.name == "release"
    assert dict(sub.variables) == {"cc": "gcc", "opt": "-O2", "extra": "1"}
    assert sub.get_template("t") is not None
    assert base.lookup("opt") == "-O0"
    assert base.lookup("extra") is None


def test_create_subconfiguration_without_overrides() -> None:
    base = Configuration("default", {"cc": "gcc"})
    sub = base.create_subconfiguration("copy")
    assert dict(sub.variables) == dict(base.variables)
    assert sub.name == "copy"


def test_with_template_replaces_by_name() -> None:
    first = _template("check", "a")
    second = _template("check", "a", "b")
    config = Configuration().with_template(first).with_template(second)

    assert config.get_template("check") is second
    assert config.get_template("check").parameters == ("a", "b")


def test_repr_mentions_name_and_templates() -> None:
    config = Configuration("debug", {"x": "1"}).with_template(_template("t"))
    text = repr(config)
    assert "'debug'" in text
    assert "'x': '1'" in text
    assert "['t']" in text
