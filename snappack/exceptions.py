"""Snapshot subsystem exceptions.

Every assertion outcome other than a pass surfaces as an ``AssertionError``
subclass so the surrounding test harness reports it as a test failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from snappack.diff.models import Attachment


class SnapshotError(AssertionError):
    """Base class for snapshot assertion errors."""


class RecordingEvent(SnapshotError):
    """An artifact was written instead of compared; re-run to get a real pass."""

    def __init__(self, message: str, *, snapshot_path: str) -> None:
        super().__init__(message)
        self.snapshot_path = snapshot_path


class MismatchError(SnapshotError):
    """Current value does not match the stored artifact."""

    def __init__(
        self,
        message: str,
        *,
        snapshot_path: str,
        failure_path: str,
        attachments: tuple["Attachment", ...] = (),
    ) -> None:
        super().__init__(message)
        self.snapshot_path = snapshot_path
        self.failure_path = failure_path
        self.attachments = attachments


class ReductionTimeoutError(SnapshotError):
    """Deferred reduction did not complete (or was cancelled) within the timeout."""


class SnapshotFormatError(SnapshotError):
    """The reducer or the format codec raised while converting a value or artifact."""


class SnapshotIOError(SnapshotError):
    """Artifact directory or file operation failed."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class SnapshotConfigError(ValueError):
    """Raised when snapshot names or configuration are invalid."""
