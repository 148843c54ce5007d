"""
Test discovery

Walks a root test file, runs each scope's `init` section, and expands the
`tests` section into more test cases: template instantiations and
references to other test files.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Set

from .config import (
    CONFIGS_SECTION,
    DEFAULT_CONFIG_NAME,
    INIT_SECTION,
    TESTS_SECTION,
    WORKING_DIRECTORY_KEY,
    Configuration,
)
from .diagnostics import Diagnostic
from .evaluator import eval_expression, run_section
from .nodes import (
    CommandStatement,
    EmptyStatement,
    InvokeProgram,
    Section,
    Statement,
    TemplateInstantiation,
)
from .parser import parse_file
from .process import describe_os_error, split_command_line
from .state import ExecutionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TestCaseName:
    __test__ = False

    path: str
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass
class TestCase:
    __test__ = False

    name: TestCaseName
    section: Section
    configuration: Configuration
    state: ExecutionState
    configurations: Dict[str, Statement] = field(init=False)

    def __post_init__(self) -> None:
        self.configurations = configuration_statements(self.section)


def configuration_statements(section: Section) -> Dict[str, Statement]:
    """Map each `configs` subsection to its statements, or a lone default"""
    configs = section.get(CONFIGS_SECTION)
    if configs is None or configs.is_leaf:
        return {DEFAULT_CONFIG_NAME: EmptyStatement()}

    return {name: sub.body for name, sub in configs.subsections.items()}


class TestDiscovery:
    """
    Expands test files into TestCase values.

    A file is parsed at most once per discovery run, no matter how many
    `tests` sections point at it.
    """

    __test__ = False

    def __init__(self) -> None:
        self.visited: Set[str] = set()
        self.tests: List[TestCase] = []

    def discover_file(
        self,
        path: str,
        config: Configuration,
        state: ExecutionState,
    ) -> None:
        path = os.path.abspath(path)
        if path in self.visited:
            logger.debug("skipping %s: already discovered", path)
            return
        self.visited.add(path)

        try:
            section = parse_file(path, state.log)
        except OSError as exc:
            state.error(Diagnostic.error("cannot read test file", describe_os_error(exc, path)))
            return

        directory = os.path.dirname(path)
        file_state = state.fork(working_directory=directory)
        file_config = config.with_variable(WORKING_DIRECTORY_KEY, directory)
        name = TestCaseName(path, os.path.relpath(path))
        self.discover_section(name, section, file_config, file_state)

    def discover_section(
        self,
        name: TestCaseName,
        section: Section,
        config: Configuration,
        state: ExecutionState,
    ) -> None:
        init = section.get(INIT_SECTION)
        if init is not None:
            config = run_section(init, config, state)

        self.tests.append(TestCase(name, section, config, state))

        tests = section.get(TESTS_SECTION)
        if tests is None:
            return

        for stmt in tests.statements:
            self.discover_subtest(name, stmt, config, state)

    def discover_subtest(
        self,
        parent: TestCaseName,
        stmt: Statement,
        config: Configuration,
        state: ExecutionState,
    ) -> None:
        if isinstance(stmt, TemplateInstantiation):
            self.instantiate_template(parent, stmt, config, state)
            return

        if isinstance(stmt, CommandStatement) and isinstance(stmt.command, InvokeProgram):
            subtest_state = state.fork()
            args = split_command_line(eval_expression(stmt.command.program, config, subtest_state))
            if subtest_state.failed or len(args) != 1:
                subtest_state.flush_error_message()
                state.error(Diagnostic.error(
                    "invalid subtest",
                    f"'{str(stmt.command).strip()}' must name exactly one test file",
                    stmt.location,
                ))
                return
            self.discover_file(state.resolve_path(args[0]), config, state)
            return

        state.error(Diagnostic.error(
            "invalid subtest",
            "a 'tests' entry must be a template instantiation or a test file path",
            stmt.location,
        ))

    def instantiate_template(
        self,
        parent: TestCaseName,
        stmt: TemplateInstantiation,
        config: Configuration,
        state: ExecutionState,
    ) -> None:
        template_name = stmt.name.contents
        template = config.get_template(template_name)
        if template is None:
            state.error(Diagnostic.error(
                "undefined template",
                f"no template named '{template_name}' is in scope",
                stmt.location,
            ))
            return

        instance_state = state.fork()
        args = [eval_expression(arg, config, instance_state).strip() for arg in stmt.arguments]
        if instance_state.failed:
            instance_state.flush_error_message()
            state.error(Diagnostic.error(
                "invalid template arguments",
                f"could not evaluate the arguments of template '{template_name}'",
                stmt.location,
            ))
            return

        if len(args) != len(template.parameters):
            state.error(Diagnostic.error(
                "invalid template arguments",
                f"template '{template_name}' expects {len(template.parameters)} argument(s); got {len(args)}",
                stmt.location,
            ))
            return

        display = f"{parent.name}: {template_name}<{', '.join(args)}>"
        instance_config = config.create_subconfiguration(config.name, dict(zip(template.parameters, args)))
        self.discover_section(TestCaseName(parent.path, display), template.contents, instance_config, instance_state)


def discover_tests(path: str, config: Configuration, state: ExecutionState) -> List[TestCase]:
    """Parse a root test file and expand it into a flat list of test cases"""
    discovery = TestDiscovery()
    discovery.discover_file(path, config, state)
    logger.debug("discovered %d test case(s) from %s", len(discovery.tests), path)
    return discovery.tests
