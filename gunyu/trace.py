"""Inspection of the current call stack."""

from __future__ import annotations

import os
import sys
import traceback
from dataclasses import dataclass, field
from typing import Optional

__all__ = [
    "FuncStackFrame",
    "FuncStack",
    "get_caller_stack",
    "get_caller_stack_frame",
    "get_stack_string",
]


@dataclass
class FuncStackFrame:
    func_name: str
    file: str
    line: int

    def __str__(self) -> str:
        return f"{self.func_name}  {self.file}:{self.line}"


@dataclass
class FuncStack:
    frames: list = field(default_factory=list)

    def string_one_line(self) -> str:
        parts = []
        for i, frame in enumerate(self.frames):
            if i == 0:
                parts.append(f"[{frame.func_name}({frame.file}:{frame.line})]")
            else:
                parts.append(f"->[{frame.func_name}]")
        return "".join(parts)

    def __str__(self) -> str:
        count = len(self.frames)
        out = []
        for i, frame in enumerate(self.frames):
            out.append(f"({count - i - 1})  {frame.func_name}\n")
            out.append(f"        {frame.file}:{frame.line}\n")
        if self.frames:
            out.append("......\n")
        return "".join(out)


def get_caller_stack_frame(skip: int) -> Optional[FuncStackFrame]:
    """Frame ``skip`` levels above the caller; skip 0 is the caller itself."""
    try:
        frame = sys._getframe(skip + 1)
    except ValueError:
        return None
    filename = frame.f_code.co_filename
    module = os.path.splitext(os.path.basename(filename))[0]
    return FuncStackFrame(
        func_name=f"{module}.{frame.f_code.co_name}",
        file=filename,
        line=frame.f_lineno,
    )


def get_caller_stack(skip: int, depth: int) -> FuncStack:
    """Up to ``depth - skip`` frames starting ``skip`` levels up; skip 1 starts at the caller."""
    frames = []
    for i in range(depth - skip):
        frame = get_caller_stack_frame(skip + i)
        if frame is None:
            break
        frames.append(frame)
    return FuncStack(frames)


def get_stack_string(size: int = 0) -> str:
    """Current stack, innermost call first, cut to ``size`` characters (0 means 10240)."""
    if size == 0:
        size = 10 * 1024
    return "".join(reversed(traceback.format_stack()))[:size]