"""Line diff subsystem for SnapKit."""

from snappack.diff.engine import diff_lines
from snappack.diff.formatting import (
    DEFAULT_CONTEXT_LINES,
    chunk,
    line_diff,
    render_hunks,
    split_lines,
)
from snappack.diff.models import Attachment, Difference, DiffReport, DiffSide, Hunk

__all__ = [
    "DEFAULT_CONTEXT_LINES",
    "DiffSide",
    "Difference",
    "Hunk",
    "Attachment",
    "DiffReport",
    "diff_lines",
    "chunk",
    "render_hunks",
    "split_lines",
    "line_diff",
]
