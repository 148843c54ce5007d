"""
Test execution

Each TestCase runs once per declared configuration, in declaration order,
on whichever worker dequeued it. Workers share nothing but the work queue,
the progress counter and the temp-file registry inside the states.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .config import BUILD_SECTION, CONFIG_NAME_KEY, RESULT_KEY, RUN_SECTION, Configuration
from .diagnostics import Diagnostic
from .discovery import TestCase, TestCaseName
from .evaluator import eval_statement, run_section

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TestOutcome:
    __test__ = False

    name: TestCaseName
    configuration: Configuration
    failed: bool

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.name.path, self.name.name, self.configuration.name)


ProgressCallback = Callable[[TestOutcome, int, int], None]


def run_test_case(test: TestCase, report: Optional[Callable[[TestOutcome], None]] = None) -> List[TestOutcome]:
    """Run every configuration of one test and cross-check their results"""
    outcomes: List[TestOutcome] = []
    expected: Optional[str] = None
    expected_from: Optional[str] = None

    for config_name, config_stmt in test.configurations.items():
        state = test.state.fork()
        config = test.configuration.create_subconfiguration(config_name, {CONFIG_NAME_KEY: config_name})

        for step in _steps(test, config_stmt):
            if state.failed:
                break
            config = step(config, state)

        result = config.lookup(RESULT_KEY)
        if result is not None:
            if expected is None:
                expected, expected_from = result, config_name
            elif result != expected:
                state.error(Diagnostic.error(
                    "inconsistent results",
                    f"configuration '{config_name}' of {test.name} produced '{result}', "
                    f"but configuration '{expected_from}' produced '{expected}'",
                    test.section.location,
                ))

        outcome = TestOutcome(test.name, config, state.failed or test.state.failed)
        outcomes.append(outcome)
        if report is not None:
            report(outcome)

    return outcomes


def _steps(test: TestCase, config_stmt):
    yield lambda config, state: eval_statement(config_stmt, config, state)
    for section_name in (BUILD_SECTION, RUN_SECTION):
        section = test.section.get(section_name)
        if section is not None:
            yield lambda config, state, section=section: run_section(section, config, state)


class _Progress:
    def __init__(self, total: int, callback: Optional[ProgressCallback]):
        self.total = total
        self.completed = 0
        self.callback = callback
        self._lock = threading.Lock()

    def __call__(self, outcome: TestOutcome) -> None:
        with self._lock:
            self.completed += 1
            completed = self.completed
        if self.callback is not None:
            self.callback(outcome, completed, self.total)


def run_tests(
    tests: Sequence[TestCase],
    jobs: int = 1,
    progress: Optional[ProgressCallback] = None,
) -> List[TestOutcome]:
    """
    Run tests on up to `jobs` worker threads.

    The returned outcomes are grouped per test, but the order of tests is
    only deterministic when jobs == 1.
    """
    total = sum(len(test.configurations) for test in tests)
    report = _Progress(total, progress)

    if jobs <= 1 or len(tests) <= 1:
        outcomes: List[TestOutcome] = []
        for test in tests:
            outcomes.extend(run_test_case(test, report))
        return outcomes

    work: queue.Queue[TestCase] = queue.Queue()
    for test in tests:
        work.put(test)

    results: List[TestOutcome] = []
    errors: List[BaseException] = []
    results_lock = threading.Lock()

    def worker() -> None:
        logger.debug("worker %s started", threading.current_thread().name)
        while True:
            try:
                test = work.get_nowait()
            except queue.Empty:
                break
            try:
                outcomes = run_test_case(test, report)
            except BaseException as exc:
                with results_lock:
                    errors.append(exc)
                return
            with results_lock:
                results.extend(outcomes)
        logger.debug("worker %s finished", threading.current_thread().name)

    threads = [
        threading.Thread(target=worker, name=f"compare-test-worker-{i}", daemon=True)
        for i in range(min(jobs, len(tests)))
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    if errors:
        raise errors[0]

    return results
