import io
import os
from pathlib import Path
import subprocess
import sys
import textwrap

from snappack.config import SnapshotConfig
from snappack.context import SnapshotContext
from snappack.plugins import LifecyclePlugin, PluginManager, use_plugin_manager
from snappack.snapshot import verify_snapshot
from snappack.staleness import (
    StaleSnapshotTracker,
    render_stale_report,
    scan_stale_artifacts,
)
from snappack.strategies import lines


def _seed_snapshots(tmp_path: Path) -> Path:
    directory = tmp_path / "tests" / "__Snapshots__" / "test_users"
    directory.mkdir(parents=True)
    (directory / "test_kept.0.txt").write_text("kept", encoding="utf-8")
    (directory / "test_removed.0.txt").write_text("gone", encoding="utf-8")
    (directory / ".DS_Store").write_text("", encoding="utf-8")
    return directory


def test_tracker_removes_touched_paths_and_ignores_dotfiles(tmp_path: Path) -> None:
    directory = _seed_snapshots(tmp_path)
    tracker = StaleSnapshotTracker()

    assert tracker.is_tracking("test_users.py") is False
    tracker.observe("test_users.py", directory, directory / "test_kept.0.txt")

    assert tracker.is_tracking("test_users.py") is True
    assert tracker.stale() == {"test_users.py": [str(directory / "test_removed.0.txt")]}


def test_tracker_lists_directory_only_on_first_reference(tmp_path: Path) -> None:
    directory = _seed_snapshots(tmp_path)
    tracker = StaleSnapshotTracker()
    tracker.observe("test_users.py", directory, directory / "test_kept.0.txt")

    (directory / "test_late.0.txt").write_text("late", encoding="utf-8")
    tracker.observe("test_users.py", directory, directory / "test_removed.0.txt")

    assert tracker.stale() == {}


def test_consume_reports_leftovers_once(tmp_path: Path) -> None:
    directory = _seed_snapshots(tmp_path)
    tracker = StaleSnapshotTracker()
    tracker.observe("test_users.py", directory, directory / "test_kept.0.txt")

    assert tracker.consume() == {"test_users.py": [str(directory / "test_removed.0.txt")]}
    assert tracker.consume() == {}


def test_render_stale_report_is_sorted_and_pluralized() -> None:
    assert render_stale_report([]) == ""
    assert render_stale_report(["/b.txt", "/a.txt"]) == (
        '\nFound 2 stale snapshots:\n\n  - "/a.txt"\n  - "/b.txt"\n'
    )
    assert render_stale_report(["/a.txt"]).startswith("\nFound 1 stale snapshot:\n")


def test_context_stale_report_lists_unreferenced_artifacts(tmp_path: Path) -> None:
    directory = _seed_snapshots(tmp_path)
    context = SnapshotContext(config=SnapshotConfig(artifacts_dir=tmp_path / "artifacts"))
    events = []

    class _Recorder(LifecyclePlugin):
        def on_stale_report(self, event) -> None:
            events.append(event)

    result = verify_snapshot(
        "kept",
        lines,
        file=tmp_path / "tests" / "test_users.py",
        function="test_kept",
        context=context,
    )
    assert result.status == "pass"

    stream = io.StringIO()
    with use_plugin_manager(PluginManager(plugins=(_Recorder(),))):
        report = context.emit_stale_report(stream=stream)

    stale_path = directory / "test_removed.0.txt"
    assert report == f'\nFound 1 stale snapshot:\n\n  - "{stale_path}"\n'
    assert stream.getvalue() == report + "\n"
    assert events[0].stale_count == 1
    assert stale_path.exists()

    assert context.emit_stale_report(stream=stream) == ""


def test_reset_clears_counters_and_tracking(tmp_path: Path) -> None:
    directory = _seed_snapshots(tmp_path)
    context = SnapshotContext()
    context.observe_snapshot("test_users.py", directory, directory / "test_kept.0.txt")
    context.counter.next(directory, "test_kept")

    context.reset()

    assert context.tracker.stale() == {}
    assert context.counter.next(directory, "test_kept") == 0


def test_scan_finds_artifacts_of_deleted_test_functions(tmp_path: Path) -> None:
    directory = _seed_snapshots(tmp_path)
    (directory / "TestGroup.test_method.0.txt").write_text("m", encoding="utf-8")
    (tmp_path / "tests" / "test_users.py").write_text(
        "def test_kept():\n"
        "    pass\n"
        "\n"
        "class TestGroup:\n"
        "    def test_method(self):\n"
        "        pass\n",
        encoding="utf-8",
    )

    assert scan_stale_artifacts(tmp_path) == [str(directory / "test_removed.0.txt")]


def test_scan_treats_artifacts_without_source_file_as_stale(tmp_path: Path) -> None:
    directory = _seed_snapshots(tmp_path)

    assert scan_stale_artifacts(tmp_path / "tests") == sorted(
        [str(directory / "test_kept.0.txt"), str(directory / "test_removed.0.txt")]
    )


def test_default_context_prints_stale_report_once_at_process_exit(tmp_path: Path) -> None:
    snapshots = tmp_path / "__Snapshots__" / "test_exit"
    snapshots.mkdir(parents=True)
    (snapshots / "old.0.txt").write_text("obsolete", encoding="utf-8")
    script = tmp_path / "test_exit.py"
    script.write_text(
        textwrap.dedent(
            """
            import atexit

            registrations = []
            _register = atexit.register


            def counting_register(func, *args, **kwargs):
                registrations.append(func)
                return _register(func, *args, **kwargs)


            atexit.register = counting_register

            import snapkit


            def test_greeting():
                snapkit.verify_snapshot("hello", snapkit.lines)
                snapkit.verify_snapshot("again", snapkit.lines)


            test_greeting()
            print(f"registrations={len(registrations)}")
            """
        ),
        encoding="utf-8",
    )
    env = {
        key: value
        for key, value in os.environ.items()
        if key not in {"SNAPKIT_RECORD", "SNAPKIT_CONFIG", "SNAPKIT_PLUGIN_CONFIG"}
    }
    repo_root = Path(__file__).resolve().parents[1]
    env["PYTHONPATH"] = os.pathsep.join(
        part for part in (str(repo_root), env.get("PYTHONPATH", "")) if part
    )
    env["SNAPSHOT_ARTIFACTS"] = str(tmp_path / "artifacts")

    completed = subprocess.run(
        [sys.executable, str(script)],
        cwd=tmp_path,
        env=env,
        capture_output=True,
        text=True,
        timeout=60,
        check=False,
    )

    assert completed.returncode == 0, completed.stderr
    assert "registrations=1" in completed.stdout
    assert completed.stdout.count("Found 1 stale snapshot:") == 1
    assert 'old.0.txt"' in completed.stdout
    assert (snapshots / "test_greeting.0.txt").read_text(encoding="utf-8") == "hello"
    assert (snapshots / "test_greeting.1.txt").read_text(encoding="utf-8") == "again"
    assert (snapshots / "old.0.txt").exists()
