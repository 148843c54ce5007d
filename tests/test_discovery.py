from __future__ import annotations

import os
from pathlib import Path
from textwrap import dedent
from typing import List, Tuple

from compare_test.config import WORKING_DIRECTORY_KEY
from compare_test.diagnostics import BufferedLog
from compare_test.discovery import TestCase, TestDiscovery, discover_tests
from compare_test.nodes import EmptyStatement
from tests.support.harness import base_config, error_titles, make_state


def _write(directory: Path, name: str, source: str) -> Path:
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dedent(source), encoding="utf-8")
    return path


def _discover(path: Path) -> Tuple[List[TestCase], BufferedLog]:
    log = BufferedLog()
    state = make_state(path.parent, log)
    return discover_tests(str(path), base_config(), state), log


def test_single_file_without_configs(tmp_path: Path) -> None:
    path = _write(tmp_path, "only.test", "run { result = 1; }")
    tests, log = _discover(path)

    assert log.entries == []
    [test] = tests
    assert test.name.path == str(path)
    assert str(test.name) == os.path.relpath(str(path))
    assert list(test.configurations) == ["default"]
    assert isinstance(test.configurations["default"], EmptyStatement)


def test_init_runs_during_discovery(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "root.test",
        """\
        init {
            cc = gcc;
            flags = -O$level;
        }
        """,
    )
    tests, _ = _discover(path)
    config = tests[0].configuration

    assert config.lookup("cc") == "gcc"
    assert config.lookup("flags") == "-Olevel"
    assert config.lookup(WORKING_DIRECTORY_KEY) == str(tmp_path)
    assert tests[0].state.working_directory == str(tmp_path)


def test_configs_are_collected_in_order(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "root.test",
        """\
        configs {
            release { opt = 2; }
            debug { opt = 0; }
        }
        """,
    )
    tests, _ = _discover(path)
    assert list(tests[0].configurations) == ["release", "debug"]


def test_subtest_files_resolve_against_their_parent(tmp_path: Path) -> None:
    root = _write(
        tmp_path,
        "root.test",
        """\
        init { shared = from-root; }
        tests { sub/child.test; }
        """,
    )
    _write(
        tmp_path,
        "sub/child.test",
        """\
        init { local = $(shared)-child; }
        run { result = $local; }
        """,
    )

    tests, log = _discover(root)

    assert log.entries == []
    assert [t.name.path for t in tests] == [str(root), str(tmp_path / "sub" / "child.test")]
    child = tests[1]
    assert child.configuration.lookup("local") == "from-root-child"
    assert child.state.working_directory == str(tmp_path / "sub")
    assert child.configuration.lookup(WORKING_DIRECTORY_KEY) == str(tmp_path / "sub")


def test_subtest_path_from_variable(tmp_path: Path) -> None:
    root = _write(
        tmp_path,
        "root.test",
        """\
        init { which = child; }
        tests { $which.test; }
        """,
    )
    _write(tmp_path, "child.test", "run { }")

    tests, log = _discover(root)
    assert log.entries == []
    assert len(tests) == 2


def test_quoted_subtest_path_with_spaces(tmp_path: Path) -> None:
    root = _write(tmp_path, "root.test", 'tests { "my dir/child.test"; }')
    _write(tmp_path, "my dir/child.test", "run { result = 1; }")

    tests, log = _discover(root)

    assert log.entries == []
    assert len(tests) == 2
    assert tests[1].name.path == str(tmp_path / "my dir" / "child.test")


def test_subtest_entry_naming_two_files(tmp_path: Path) -> None:
    root = _write(tmp_path, "root.test", "tests { a.test b.test; }")
    _write(tmp_path, "a.test", "run { }")
    _write(tmp_path, "b.test", "run { }")

    tests, log = _discover(root)

    assert error_titles(log) == ["invalid subtest"]
    assert "must name exactly one test file" in log.errors[0].message
    assert len(tests) == 1


def test_each_file_is_parsed_once(tmp_path: Path) -> None:
    root = _write(
        tmp_path,
        "root.test",
        """\
        init {
            template wrap<n> {
                tests { shared.test; }
            }
        }
        tests {
            template wrap<1>;
            template wrap<2>;
            shared.test;
            ./shared.test;
        }
        """,
    )
    _write(tmp_path, "shared.test", "run { result = same; }")

    tests, log = _discover(root)

    assert log.entries == []
    names = [str(t.name) for t in tests]
    shared = [t for t in tests if t.name.path == str(tmp_path / "shared.test")]
    assert len(shared) == 1
    assert len(names) == 4


def test_discovery_object_remembers_visited_files(tmp_path: Path) -> None:
    path = _write(tmp_path, "a.test", "run { }")
    discovery = TestDiscovery()
    state = make_state(tmp_path)

    discovery.discover_file(str(path), base_config(), state)
    discovery.discover_file(str(path), base_config(), state)

    assert len(discovery.tests) == 1
    assert discovery.visited == {str(path)}


def test_template_instances_get_their_own_names_and_bindings(tmp_path: Path) -> None:
    root = _write(
        tmp_path,
        "root.test",
        """\
        init {
            template check<value, label> {
                run { result = $value; }
            }
        }
        tests {
            template check<1, one>;
            template check<2, two words>;
        }
        """,
    )

    tests, log = _discover(root)

    assert log.entries == []
    assert len(tests) == 3
    parent, first, second = tests
    assert str(first.name) == f"{parent.name}: check<1, one>"
    assert str(second.name) == f"{parent.name}: check<2, two words>"
    assert first.configuration.lookup("value") == "1"
    assert second.configuration.lookup("label") == "two words"
    assert first.section.get("run") is not None
    # Instances never share a state with each other
    assert first.state is not second.state


def test_templates_can_nest_instantiations(tmp_path: Path) -> None:
    root = _write(
        tmp_path,
        "root.test",
        """\
        init {
            template leaf<x> { run { result = $x; } }
            template outer<y> {
                tests { template leaf<$(y)-inner>; }
            }
        }
        tests { template outer<a>; }
        """,
    )

    tests, log = _discover(root)

    assert log.entries == []
    assert [str(t.name).rsplit(": ", 1)[-1] for t in tests[1:]] == ["outer<a>", "leaf<a-inner>"]
    assert tests[2].configuration.lookup("x") == "a-inner"


def test_undefined_template(tmp_path: Path) -> None:
    root = _write(tmp_path, "root.test", "tests { template nowhere<1>; }")
    tests, log = _discover(root)

    assert error_titles(log) == ["undefined template"]
    assert len(tests) == 1
    assert tests[0].state.failed


def test_template_argument_count_mismatch(tmp_path: Path) -> None:
    root = _write(
        tmp_path,
        "root.test",
        """\
        init { template pair<a, b> { } }
        tests { template pair<only-one>; }
        """,
    )
    tests, log = _discover(root)

    assert error_titles(log) == ["invalid template arguments"]
    assert "expects 2 argument(s); got 1" in log.errors[0].message
    assert len(tests) == 1


def test_template_argument_evaluation_failure(workdir: Path) -> None:
    root = _write(
        workdir,
        "root.test",
        """\
        init { template t<a> { } }
        tests { template t<@($python exit_with.py 1)>; }
        """,
    )
    tests, log = _discover(root)

    assert error_titles(log) == ["invalid template arguments"]
    assert len(tests) == 1


def test_invalid_subtest_entry(tmp_path: Path) -> None:
    root = _write(tmp_path, "root.test", "tests { x = 1; a | b; }")
    tests, log = _discover(root)

    assert error_titles(log) == ["invalid subtest", "invalid subtest"]
    assert len(tests) == 1


def test_missing_subtest_file(tmp_path: Path) -> None:
    root = _write(tmp_path, "root.test", "tests { missing.test; }")
    tests, log = _discover(root)

    assert error_titles(log) == ["cannot read test file"]
    assert "file not found" in log.errors[0].message
    assert len(tests) == 1


def test_parse_errors_are_logged_and_discovery_continues(tmp_path: Path) -> None:
    root = _write(
        tmp_path,
        "root.test",
        """\
        init { x = 1 }
        run { result = $x; }
        """,
    )
    tests, log = _discover(root)

    assert error_titles(log) == ["unexpected token"]
    assert len(tests) == 1
    assert tests[0].section.get("run") is not None
