from __future__ import annotations

import logging
import os
import platform
import re
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern

from rich.markup import escape

from .config import DEFAULT_CONFIG_NAME, Configuration
from .diagnostics import ConsoleLog, Diagnostic
from .discovery import TestCase, TestDiscovery
from .engine import TestOutcome, run_tests
from .errors import UsageError
from .parser import parse_file
from .state import ExecutionState
from .tree_dump import section_tree

USAGE = """\
usage: compare-test [options] FILE...

Run every test described by the given test files, once per configuration,
and check that all configurations agree on each test's result.

options:
  -j, --jobs [N]     run tests on N worker threads (default: one per CPU)
  --filter REGEX     only run tests whose name matches REGEX
  --dump-ast         print the parsed section tree of each FILE and exit
  -v, --verbose      log internal events to stderr
  -h, --help         show this message and exit
  --NAME [VALUE]     set variable NAME (repeated options join with spaces)
"""

# Values such as `--offset -1` are not options
NEGATIVE_NUMBER = re.compile(r"-\d+(\.\d+)?")


@dataclass
class Options:
    files: List[str] = field(default_factory=list)
    jobs: int = 1
    name_filter: Optional[Pattern[str]] = None
    dump_ast: bool = False
    verbose: bool = False
    show_help: bool = False
    variables: Dict[str, List[str]] = field(default_factory=dict)

    def initial_variables(self) -> Dict[str, str]:
        values = {"platform": platform.system().lower()}
        values.update({name: " ".join(items) for name, items in self.variables.items()})
        return values


def _parse_jobs(text: str) -> int:
    try:
        jobs = int(text)
    except ValueError:
        raise UsageError(f"invalid job count: {text!r}") from None
    if jobs < 1:
        raise UsageError(f"job count must be positive; got {jobs}")
    return jobs


def _compile_filter(text: str) -> Pattern[str]:
    try:
        return re.compile(text)
    except re.error as exc:
        raise UsageError(f"invalid --filter pattern {text!r}: {exc}") from None


def parse_args(argv: List[str]) -> Options:
    options = Options()
    i = 0

    def next_value(flag: str) -> str:
        nonlocal i
        if i + 1 >= len(argv):
            raise UsageError(f"{flag} flag requires a value")
        i += 1
        return argv[i]

    while i < len(argv):
        token = argv[i]

        if token in ("-h", "--help"):
            options.show_help = True
        elif token in ("-j", "--jobs"):
            if i + 1 < len(argv) and argv[i + 1].isdigit():
                i += 1
                options.jobs = _parse_jobs(argv[i])
            else:
                options.jobs = os.cpu_count() or 1
        elif token.startswith("--jobs="):
            options.jobs = _parse_jobs(token.split("=", 1)[1])
        elif token.startswith("-j") and token[2:].isdigit():
            options.jobs = _parse_jobs(token[2:])
        elif token == "--filter":
            options.name_filter = _compile_filter(next_value(token))
        elif token.startswith("--filter="):
            options.name_filter = _compile_filter(token.split("=", 1)[1])
        elif token == "--dump-ast":
            options.dump_ast = True
        elif token in ("-v", "--verbose"):
            options.verbose = True
        elif token.startswith("--") and len(token) > 2:
            name, sep, value = token[2:].partition("=")
            if not sep:
                following = argv[i + 1] if i + 1 < len(argv) else None
                if following is not None and (not following.startswith("-") or NEGATIVE_NUMBER.fullmatch(following)):
                    i += 1
                    value = following
                else:
                    value = "true"
            options.variables.setdefault(name, []).append(value)
        elif token.startswith("-") and token != "-":
            raise UsageError(f"unknown option: {token}")
        else:
            options.files.append(token)

        i += 1

    if not options.files and not options.show_help:
        raise UsageError("no test files given")

    return options


def _report_progress(console: ConsoleLog, outcome: TestOutcome, completed: int, total: int) -> None:
    status = "[bold red]FAIL[/bold red]" if outcome.failed else "[bold green]PASS[/bold green]"
    console.print(
        f"[{completed}/{total}] {status} {escape(str(outcome.name))} "
        f"[grey50]({escape(outcome.configuration.name)})[/grey50]"
    )


def _report_summary(console: ConsoleLog, outcomes: List[TestOutcome]) -> None:
    failed = [outcome for outcome in outcomes if outcome.failed]
    passed = len(outcomes) - len(failed)

    console.print("")
    console.print(
        f"[bold]Test results:[/bold] [green]{passed} passed[/green], "
        f"[red]{len(failed)} failed[/red] out of {len(outcomes)} runs"
    )

    if failed:
        console.print("[bold]Failed runs:[/bold]")
        for outcome in sorted(failed, key=lambda o: o.key):
            console.print(f"  [red]• {escape(str(outcome.name))} ({escape(outcome.configuration.name)})[/red]")


def discover(options: Options, state: ExecutionState) -> List[TestCase]:
    config = Configuration(DEFAULT_CONFIG_NAME, options.initial_variables())
    discovery = TestDiscovery()
    for path in options.files:
        discovery.discover_file(path, config, state)

    tests = discovery.tests
    if options.name_filter is not None:
        tests = [test for test in tests if options.name_filter.search(str(test.name))]
        state.log.log(Diagnostic.event(
            "tests filtered",
            f"--filter '{options.name_filter.pattern}' selected {len(tests)} of {len(discovery.tests)} discovered tests",
        ))
    return tests


def run(options: Options, console: ConsoleLog) -> int:
    """Run the whole pipeline and return the process exit code"""
    for path in options.files:
        if not os.path.isfile(path):
            raise UsageError(f"no such test file: {path}")

    if options.dump_ast:
        for path in options.files:
            console.write(section_tree(parse_file(path, console)).pretty())
        return 1 if console.error_count else 0

    root_state = ExecutionState(os.getcwd(), console, console)
    try:
        tests = discover(options, root_state)
        outcomes = run_tests(
            tests,
            jobs=options.jobs,
            progress=lambda outcome, done, total: _report_progress(console, outcome, done, total),
        )
    finally:
        root_state.temp_files.release()

    _report_summary(console, outcomes)

    if root_state.failed or console.error_count or any(outcome.failed for outcome in outcomes):
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    args = sys.argv[1:] if argv is None else argv

    try:
        options = parse_args(args)
    except UsageError as exc:
        print(f"compare-test: {exc}", file=sys.stderr)
        print(USAGE, file=sys.stderr, end="")
        raise SystemExit(2) from None

    if options.show_help:
        print(USAGE, end="")
        raise SystemExit(0)

    if options.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(threadName)s %(name)s: %(message)s")

    console = ConsoleLog()
    try:
        code = run(options, console)
    except UsageError as exc:
        print(f"compare-test: {exc}", file=sys.stderr)
        raise SystemExit(2) from None

    raise SystemExit(code)


if __name__ == "__main__":
    main()
