"""
Call-site resolution relative to a project root.
"""

from __future__ import annotations

import inspect
from typing import NamedTuple


class CallerLocation(NamedTuple):
    file: str
    line: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}"


def relative_path(path: str, project_name: str) -> str:
    """Return the part of `path` after the first `/<project_name>/`, or `path` itself."""
    if not project_name:
        return path
    return path.split(f"/{project_name}/", 1)[-1]


def resolve_caller(skip: int, project_name: str) -> CallerLocation | None:
    """Locate the frame `skip` levels above the function calling this one.

    Returns None when the stack is not that deep.
    """
    frame = inspect.currentframe()
    try:
        for _ in range(skip + 1):
            if frame is None:
                return None
            frame = frame.f_back
        if frame is None:
            return None
        return CallerLocation(relative_path(frame.f_code.co_filename, project_name), frame.f_lineno)
    finally:
        del frame
