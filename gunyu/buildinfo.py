"""Build information and the version command."""

from __future__ import annotations

import argparse
import os
import sys
from typing import Optional, TextIO

__all__ = ["VERSION", "DATE", "COMMIT", "BRANCH", "print_version", "main"]

VERSION = ""
DATE = ""
COMMIT = ""
BRANCH = ""


def print_version(stream: TextIO, version: str, commit: str, date: str, branch: str) -> None:
    stream.write(f"Version: {version}\n")
    stream.write(f"Branch: {branch}\n")
    stream.write(f"CommitID: {commit}\n")
    stream.write(f"Binary: {sys.argv[0]}\n")
    stream.write(f"Compile date: {date}\n")
    stream.write("(version and date only valid if compiled with make)\n")


def main(argv: Optional[list] = None) -> int:
    """Export build info to the environment; print it when --version is given."""
    parser = argparse.ArgumentParser()
    parser.add_argument("--version", action="store_true", help="Print version of this binary")
    args, _ = parser.parse_known_args(argv)
    os.environ["app.version"] = VERSION
    os.environ["app.date"] = DATE
    os.environ["app.commit"] = COMMIT
    os.environ["app.branch"] = BRANCH
    if args.version:
        print_version(sys.stdout, VERSION, COMMIT, DATE, BRANCH)
    return 0