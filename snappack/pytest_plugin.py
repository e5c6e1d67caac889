"""pytest integration: record flag, isolated context fixture and stale summary."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import pytest

from snappack.context import (
    SnapshotContext,
    get_default_context,
    peek_default_context,
    use_context,
)

RECORD_OPTION = "--snapshot-record"


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("snapkit")
    group.addoption(
        RECORD_OPTION,
        action="store_true",
        default=False,
        help="Re-record every snapshot artifact instead of asserting against it.",
    )


def pytest_configure(config: pytest.Config) -> None:
    if config.getoption(RECORD_OPTION):
        get_default_context().configure(record=True)


@contextmanager
def isolated_snapshot_context(*, record: bool = False) -> Iterator[SnapshotContext]:
    """Fresh counters and stale tracking for one block, config read from env."""
    context = SnapshotContext.from_env()
    if record:
        context.configure(record=True)
    with use_context(context):
        yield context


@pytest.fixture
def snapshot_context(request: pytest.FixtureRequest) -> Iterator[SnapshotContext]:
    with isolated_snapshot_context(record=request.config.getoption(RECORD_OPTION)) as context:
        yield context


def pytest_terminal_summary(terminalreporter: pytest.TerminalReporter) -> None:
    context = peek_default_context()
    if context is None:
        return
    report = context.take_stale_report()
    if report:
        terminalreporter.write(report)
