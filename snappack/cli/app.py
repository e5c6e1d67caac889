import json
from importlib.metadata import PackageNotFoundError, version as package_version
from pathlib import Path
from typing import Any

import typer

from snappack.context import SnapshotContext
from snappack.diff import DEFAULT_CONTEXT_LINES, chunk, diff_lines, render_hunks, split_lines
from snappack.exceptions import SnapshotConfigError
from snappack.snapshot import compare_snapshot_file
from snappack.staleness import render_stale_report, scan_stale_artifacts
from snappack.strategies import data, lines

app = typer.Typer(help="SnapKit CLI")

_FORMAT_STRATEGIES = {
    "lines": lines,
    "data": data,
}


class _OutputOptions:
    quiet: bool = False
    no_color: bool = False
    stable_json: bool = True


_OUTPUT_OPTIONS = _OutputOptions()


def _resolve_cli_version() -> str:
    try:
        return package_version("snapkit")
    except PackageNotFoundError:
        from snapkit import __version__ as local_version

        return local_version


def _version_callback(value: bool) -> None:
    if not value:
        return
    typer.echo(_resolve_cli_version(), color=False)
    raise typer.Exit()


@app.callback()
def app_options(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show SnapKit version and exit.",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        help="Suppress non-error text output.",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable ANSI color output.",
    ),
    stable_json: bool = typer.Option(
        True,
        "--stable-json/--pretty-json",
        help="Emit stable compact JSON (or pretty JSON).",
    ),
) -> None:
    """Global output controls for all CLI commands."""
    _OUTPUT_OPTIONS.quiet = quiet
    _OUTPUT_OPTIONS.no_color = no_color
    _OUTPUT_OPTIONS.stable_json = stable_json


def _echo(message: str, *, err: bool = False, force: bool = False) -> None:
    if _OUTPUT_OPTIONS.quiet and not err and not force:
        return
    typer.echo(message, err=err, color=not _OUTPUT_OPTIONS.no_color)


def _echo_json(payload: dict[str, Any], *, err: bool = False) -> None:
    if _OUTPUT_OPTIONS.stable_json:
        rendered = json.dumps(
            payload,
            ensure_ascii=True,
            sort_keys=True,
            separators=(",", ":"),
        )
    else:
        rendered = json.dumps(
            payload,
            ensure_ascii=True,
            sort_keys=True,
            indent=2,
        )
    typer.echo(rendered, err=err, color=not _OUTPUT_OPTIONS.no_color)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as error:
        raise typer.BadParameter(f"cannot read {path}: {error}") from error


@app.command()
def diff(
    old: Path = typer.Argument(..., help="Reference text file."),
    new: Path = typer.Argument(..., help="Current text file."),
    context: int = typer.Option(
        DEFAULT_CONTEXT_LINES,
        "--context",
        "-U",
        min=0,
        help="Unchanged lines shown around each change.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable diff output.",
    ),
) -> None:
    """Line diff two text files with snapshot-style hunks."""
    old_text = _read_text(old)
    new_text = _read_text(new)
    hunks = (
        []
        if old_text == new_text
        else chunk(diff_lines(split_lines(old_text), split_lines(new_text)), context=context)
    )
    identical = not hunks
    exit_code = 0 if identical else 1

    if json_output:
        _echo_json(
            {
                "status": "identical" if identical else "different",
                "exit_code": exit_code,
                "old_path": str(old),
                "new_path": str(new),
                "hunks": [hunk.to_dict() for hunk in hunks],
            }
        )
    elif identical:
        _echo(f"no differences: {old} {new}")
    else:
        _echo(f"--- {old}\n+++ {new}", force=True)
        _echo(render_hunks(hunks), force=True)

    if exit_code != 0:
        raise typer.Exit(code=exit_code)


@app.command()
def snapshot(
    name: str = typer.Argument(..., help="Snapshot name (stored as <name>.<extension>)."),
    candidate: Path = typer.Option(
        ...,
        "--candidate",
        "-c",
        help="Candidate file to record or compare.",
    ),
    snapshots_dir: Path = typer.Option(
        Path("__Snapshots__"),
        "--snapshots-dir",
        help="Directory containing snapshot reference artifacts.",
    ),
    record: bool = typer.Option(
        False,
        "--record",
        help="Overwrite the reference artifact with the candidate.",
    ),
    format_name: str = typer.Option(
        "lines",
        "--format",
        help="Artifact format: 'lines' (text, .txt, line diff) or 'data' (raw bytes).",
    ),
    diff_tool: str | None = typer.Option(
        None,
        "--diff-tool",
        help="External diff command shown on mismatch instead of file markers.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable snapshot output.",
    ),
) -> None:
    """Record or assert a candidate file against a named snapshot artifact."""
    strategy = _FORMAT_STRATEGIES.get(format_name)
    try:
        if strategy is None:
            raise SnapshotConfigError(
                f"unsupported format {format_name!r}; expected one of "
                f"{', '.join(sorted(_FORMAT_STRATEGIES))}"
            )
        context = SnapshotContext.from_env()
        if diff_tool:
            context.configure(diff_tool=diff_tool)
        result = compare_snapshot_file(
            snapshot_name=name,
            candidate_path=candidate,
            snapshots_dir=snapshots_dir,
            strategy=strategy,
            record=record,
            context=context,
        )
    except SnapshotConfigError as error:
        message = f"snapshot failed: {error}"
        if json_output:
            _echo_json(
                {
                    "status": "error",
                    "exit_code": 1,
                    "snapshot_name": name,
                    "candidate_path": str(candidate),
                    "snapshots_dir": str(snapshots_dir),
                    "message": message,
                }
            )
        else:
            _echo(message, err=True)
        raise typer.Exit(code=1) from error

    # An explicit record run succeeds; a first-run recording still fails the assertion.
    exit_code = 0 if result.status == "recorded" and result.recording else result.exit_code

    if json_output:
        payload = {"snapshot_name": name, "candidate_path": str(candidate), **result.to_dict()}
        payload["exit_code"] = exit_code
        _echo_json(payload)
    elif result.status == "recorded":
        _echo(f"snapshot recorded: name={name} path={result.snapshot_path}", force=True)
        _echo(result.message)
    elif result.status == "pass":
        _echo(f"snapshot passed: name={name} path={result.snapshot_path}")
    elif result.status == "fail":
        _echo(
            f"snapshot failed: name={name} path={result.snapshot_path} "
            f"failure={result.failure_path}",
            force=True,
        )
        _echo(result.message, force=True)
    else:
        _echo(f"snapshot failed: {result.message}", err=True)

    if exit_code != 0:
        raise typer.Exit(code=exit_code)


@app.command()
def stale(
    roots: list[Path] = typer.Argument(..., help="Test directories to scan for __Snapshots__."),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable stale report.",
    ),
) -> None:
    """List artifacts whose test function no longer exists in the sibling source file."""
    stale_paths = sorted(path for root in roots for path in scan_stale_artifacts(root))
    exit_code = 1 if stale_paths else 0

    if json_output:
        _echo_json(
            {
                "status": "stale" if stale_paths else "ok",
                "exit_code": exit_code,
                "stale_count": len(stale_paths),
                "stale": stale_paths,
            }
        )
    elif stale_paths:
        _echo(render_stale_report(stale_paths), force=True)
    else:
        _echo("no stale snapshots found")

    if exit_code != 0:
        raise typer.Exit(code=exit_code)


def main() -> None:
    app()
