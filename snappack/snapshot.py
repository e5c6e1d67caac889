"""Record/compare protocol for snapshot assertions.

Given a value and a strategy, an assertion resolves a stable artifact path,
reduces the value to its diffable format and then either records the
artifact (first run or record mode), passes (bytes match) or fails (diff
message, failure artifact written to the artifacts directory).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from snappack.context import SnapshotContext, get_current_context
from snappack.diff import Attachment
from snappack.exceptions import (
    MismatchError,
    RecordingEvent,
    SnapshotConfigError,
    SnapshotError,
    SnapshotFormatError,
    SnapshotIOError,
)
from snappack.formats import Diffable
from snappack.naming import (
    resolve_call_site,
    sanitize_identifier,
    snapshot_directory,
    snapshot_file_name,
)
from snappack.plugins import SnapshotEndEvent, SnapshotStartEvent, get_active_plugin_manager
from snappack.strategies import Strategy, default_strategy, resolve, resolve_async

SnapshotStatus = Literal["recorded", "pass", "fail", "error"]

DEFAULT_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True, slots=True)
class SnapshotLocation:
    """Resolved artifact identity for one assertion."""

    source_file: str
    function: str
    identifier: str
    directory: Path
    path: Path


@dataclass(slots=True)
class SnapshotResult:
    """Outcome of a single snapshot assertion."""

    identifier: str
    snapshot_path: str
    status: SnapshotStatus
    recording: bool = False
    failure_path: str | None = None
    message: str = ""
    attachments: tuple[Attachment, ...] = ()
    error: SnapshotError | None = field(default=None, repr=False, compare=False)

    @property
    def passed(self) -> bool:
        return self.status == "pass"

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def raise_for_status(self) -> None:
        if self.error is not None:
            raise self.error

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "exit_code": self.exit_code,
            "identifier": self.identifier,
            "snapshot_path": self.snapshot_path,
            "recording": self.recording,
            "failure_path": self.failure_path,
            "message": self.message,
            "attachments": [attachment.to_dict() for attachment in self.attachments],
            "error_type": self.error.__class__.__name__ if self.error is not None else None,
        }


def resolve_snapshot_location(
    *,
    source_file: str,
    function: str,
    name: str | None,
    path_extension: str | None,
    context: SnapshotContext,
) -> SnapshotLocation:
    """Resolve ``<source dir>/__Snapshots__/<stem>/<function>.<name-or-index>[.<ext>]``."""
    directory = snapshot_directory(source_file)
    if name is not None:
        identifier = sanitize_identifier(name)
    else:
        identifier = str(context.counter.next(directory, function))
    path = directory / snapshot_file_name(function, identifier, path_extension)
    return SnapshotLocation(
        source_file=source_file,
        function=function,
        identifier=identifier,
        directory=directory,
        path=path,
    )


def verify_snapshot(
    value: Any,
    strategy: Strategy[Any, Any] | None = None,
    *,
    name: str | None = None,
    record: bool = False,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    file: str | Path | None = None,
    function: str | None = None,
    context: SnapshotContext | None = None,
    stacklevel: int = 1,
) -> SnapshotResult:
    """Record or compare ``value`` and return the outcome without raising.

    Without a ``strategy`` one is picked from the value type by
    ``default_strategy``.
    """
    strategy = strategy if strategy is not None else default_strategy(value)
    ctx = context if context is not None else get_current_context()
    call_site = resolve_call_site(file=file, function=function, stacklevel=stacklevel)
    location = resolve_snapshot_location(
        source_file=call_site.source_file,
        function=call_site.function,
        name=name,
        path_extension=strategy.path_extension,
        context=ctx,
    )
    recording = ctx.is_recording(record)

    plugin_manager = get_active_plugin_manager()
    plugin_manager.on_snapshot_start(_start_event(location, recording))
    try:
        try:
            ctx.observe_snapshot(location.source_file, location.directory, location.path)
            current = reduce_value(strategy, value, timeout=timeout)
            result = settle_snapshot(location, strategy, current, recording=recording, context=ctx)
        except SnapshotError as error:
            result = _error_result(location, recording, error)
    except Exception as error:
        plugin_manager.on_snapshot_end(_crash_event(location, error))
        raise

    plugin_manager.on_snapshot_end(_end_event(result))
    return result


async def verify_snapshot_async(
    value: Any,
    strategy: Strategy[Any, Any] | None = None,
    *,
    name: str | None = None,
    record: bool = False,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    file: str | Path | None = None,
    function: str | None = None,
    context: SnapshotContext | None = None,
    stacklevel: int = 1,
) -> SnapshotResult:
    """Async variant of ``verify_snapshot`` for use inside a running event loop."""
    strategy = strategy if strategy is not None else default_strategy(value)
    ctx = context if context is not None else get_current_context()
    call_site = resolve_call_site(file=file, function=function, stacklevel=stacklevel)
    location = resolve_snapshot_location(
        source_file=call_site.source_file,
        function=call_site.function,
        name=name,
        path_extension=strategy.path_extension,
        context=ctx,
    )
    recording = ctx.is_recording(record)

    plugin_manager = get_active_plugin_manager()
    plugin_manager.on_snapshot_start(_start_event(location, recording))
    try:
        try:
            ctx.observe_snapshot(location.source_file, location.directory, location.path)
            current = await reduce_value_async(strategy, value, timeout=timeout)
            result = settle_snapshot(location, strategy, current, recording=recording, context=ctx)
        except SnapshotError as error:
            result = _error_result(location, recording, error)
    except Exception as error:
        plugin_manager.on_snapshot_end(_crash_event(location, error))
        raise

    plugin_manager.on_snapshot_end(_end_event(result))
    return result


def assert_snapshot(
    value: Any,
    strategy: Strategy[Any, Any] | None = None,
    *,
    name: str | None = None,
    record: bool = False,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    file: str | Path | None = None,
    function: str | None = None,
    context: SnapshotContext | None = None,
    stacklevel: int = 1,
) -> SnapshotResult:
    """Like ``verify_snapshot`` but raises unless the snapshot matched."""
    result = verify_snapshot(
        value,
        strategy,
        name=name,
        record=record,
        timeout=timeout,
        file=file,
        function=function,
        context=context,
        stacklevel=stacklevel + 1,
    )
    result.raise_for_status()
    return result


async def assert_snapshot_async(
    value: Any,
    strategy: Strategy[Any, Any] | None = None,
    *,
    name: str | None = None,
    record: bool = False,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    file: str | Path | None = None,
    function: str | None = None,
    context: SnapshotContext | None = None,
    stacklevel: int = 1,
) -> SnapshotResult:
    result = await verify_snapshot_async(
        value,
        strategy,
        name=name,
        record=record,
        timeout=timeout,
        file=file,
        function=function,
        context=context,
        stacklevel=stacklevel + 1,
    )
    result.raise_for_status()
    return result


def settle_snapshot(
    location: SnapshotLocation,
    strategy: Strategy[Any, Any],
    current: Any,
    *,
    recording: bool,
    context: SnapshotContext,
) -> SnapshotResult:
    """Write, pass or fail a reduced format value against the artifact on disk."""
    diffable = strategy.diffable
    snapshot_bytes = _encode_value(diffable, current)

    if recording or not location.path.exists():
        write_artifact_bytes(location.path, snapshot_bytes)
        message = _recorded_message(location, recording=recording)
        return SnapshotResult(
            identifier=location.identifier,
            snapshot_path=str(location.path),
            status="recorded",
            recording=recording,
            message=message,
            error=RecordingEvent(message, snapshot_path=str(location.path)),
        )

    reference = decode_artifact(diffable, read_artifact_bytes(location.path), location.path)
    report = diffable.diff(reference, current)
    if report is None:
        return SnapshotResult(
            identifier=location.identifier,
            snapshot_path=str(location.path),
            status="pass",
            message="snapshot matched",
        )

    failure_path = context.config.resolved_artifacts_dir() / location.path.name
    write_artifact_bytes(failure_path, snapshot_bytes)
    message = _failure_message(
        report.message,
        reference_path=location.path,
        failure_path=failure_path,
        diff_tool=context.config.diff_tool,
    )
    return SnapshotResult(
        identifier=location.identifier,
        snapshot_path=str(location.path),
        status="fail",
        failure_path=str(failure_path),
        message=message,
        attachments=report.attachments,
        error=MismatchError(
            message,
            snapshot_path=str(location.path),
            failure_path=str(failure_path),
            attachments=report.attachments,
        ),
    )


def reduce_value(strategy: Strategy[Any, Any], value: Any, *, timeout: float) -> Any:
    """Run the reducer and wait for it; reducer failures become ``SnapshotFormatError``."""
    try:
        return resolve(strategy.snapshot(value), timeout=timeout)
    except (SnapshotError, SnapshotConfigError):
        raise
    except Exception as error:
        raise _reduction_failure(error) from error


async def reduce_value_async(strategy: Strategy[Any, Any], value: Any, *, timeout: float) -> Any:
    try:
        return await resolve_async(strategy.snapshot(value), timeout=timeout)
    except (SnapshotError, SnapshotConfigError):
        raise
    except Exception as error:
        raise _reduction_failure(error) from error


def decode_artifact(diffable: Diffable[Any], data: bytes, path: Path) -> Any:
    try:
        return diffable.from_bytes(data)
    except Exception as error:
        raise SnapshotFormatError(
            f"Couldn't decode snapshot artifact {path}: {error.__class__.__name__}: {error}"
        ) from error


def _encode_value(diffable: Diffable[Any], value: Any) -> bytes:
    try:
        return diffable.to_bytes(value)
    except Exception as error:
        raise SnapshotFormatError(
            f"Couldn't encode snapshot value: {error.__class__.__name__}: {error}"
        ) from error


def _reduction_failure(error: Exception) -> SnapshotFormatError:
    return SnapshotFormatError(f"Couldn't snapshot value: {error.__class__.__name__}: {error}")


def write_artifact_bytes(path: Path, data: bytes) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as error:
        raise SnapshotIOError(f"Couldn't write snapshot artifact {path}: {error}", path=str(path)) from error


def read_artifact_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as error:
        raise SnapshotIOError(f"Couldn't read snapshot artifact {path}: {error}", path=str(path)) from error


def _recorded_message(location: SnapshotLocation, *, recording: bool) -> str:
    if recording:
        return (
            "Record mode is on. Turn record mode off and re-run "
            f'"{location.function}" to assert against the newly recorded snapshot.\n\n'
            f'Recorded snapshot: "{location.path}"'
        )
    return (
        f'No reference was found on disk. Recorded snapshot: "{location.path}"\n\n'
        f'Re-run "{location.function}" to assert against the newly recorded snapshot.'
    )


def _failure_message(
    failure: str,
    *,
    reference_path: Path,
    failure_path: Path,
    diff_tool: str | None,
) -> str:
    if diff_tool:
        locations = f'{diff_tool} "{reference_path}" "{failure_path}"'
    else:
        locations = f'@-\n"{reference_path}"\n@+\n"{failure_path}"'
    return f"{failure.strip()}\n\n{locations}"


def _error_result(
    location: SnapshotLocation,
    recording: bool,
    error: SnapshotError,
) -> SnapshotResult:
    return SnapshotResult(
        identifier=location.identifier,
        snapshot_path=str(location.path),
        status="error",
        recording=recording,
        failure_path=None,
        message=str(error),
        error=error,
    )


def _start_event(location: SnapshotLocation, recording: bool) -> SnapshotStartEvent:
    return SnapshotStartEvent(
        identifier=location.identifier,
        snapshot_path=str(location.path),
        source_file=location.source_file,
        function=location.function,
        recording=recording,
    )


def _end_event(result: SnapshotResult) -> SnapshotEndEvent:
    return SnapshotEndEvent(
        identifier=result.identifier,
        snapshot_path=result.snapshot_path,
        status=result.status,
        failure_path=result.failure_path,
        attachment_names=tuple(attachment.name for attachment in result.attachments),
        error_type=(
            result.error.__class__.__name__
            if result.error is not None and result.status == "error"
            else None
        ),
        error_message=result.message if result.status == "error" else None,
    )


def _crash_event(location: SnapshotLocation, error: Exception) -> SnapshotEndEvent:
    return SnapshotEndEvent(
        identifier=location.identifier,
        snapshot_path=str(location.path),
        status="error",
        error_type=error.__class__.__name__,
        error_message=str(error),
    )


def resolve_snapshot_baseline_path(
    snapshot_name: str,
    snapshots_dir: str | Path,
    path_extension: str | None,
) -> Path:
    """Resolve a named baseline artifact path inside ``snapshots_dir``."""
    identifier = sanitize_identifier(snapshot_name)
    if not path_extension or identifier.endswith(f".{path_extension}"):
        return Path(snapshots_dir) / identifier
    return Path(snapshots_dir) / f"{identifier}.{path_extension}"


def compare_snapshot_file(
    *,
    snapshot_name: str,
    candidate_path: str | Path,
    snapshots_dir: str | Path = "__Snapshots__",
    strategy: Strategy[Any, Any],
    record: bool = False,
    context: SnapshotContext | None = None,
) -> SnapshotResult:
    """Record or compare a candidate file against a named baseline artifact."""
    ctx = context if context is not None else get_current_context()
    baseline_path = resolve_snapshot_baseline_path(
        snapshot_name,
        snapshots_dir,
        strategy.path_extension,
    )
    location = SnapshotLocation(
        source_file=str(candidate_path),
        function=snapshot_name,
        identifier=snapshot_name,
        directory=baseline_path.parent,
        path=baseline_path,
    )
    recording = ctx.is_recording(record)
    try:
        candidate = Path(candidate_path)
        current = decode_artifact(strategy.diffable, read_artifact_bytes(candidate), candidate)
        return settle_snapshot(location, strategy, current, recording=recording, context=ctx)
    except SnapshotError as error:
        return _error_result(location, recording, error)
