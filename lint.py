#!/usr/bin/env python3
"""
Check (or reformat) the minihttpd sources with Black and Flake8.

Usage:
    python lint.py          # reformat, then report Flake8 findings
    python lint.py --check  # report only, for CI
"""

import argparse
import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.absolute()
TARGETS = ["minihttpd", "tests", "conftest.py", "setup.py", "lint.py"]
MAX_LINE_LENGTH = "110"


def run_tool(command, description):
    """Run one tool from the project root and return its exit code."""
    print(f"\n{description}...")
    result = subprocess.run(command, cwd=PROJECT_ROOT, capture_output=True, text=True)

    if result.stdout:
        print(result.stdout)
    if result.stderr:
        print(result.stderr, file=sys.stderr)

    if result.returncode != 0:
        print(f"{description} failed with exit code {result.returncode}")
    return result.returncode


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run Black and Flake8 over minihttpd")
    parser.add_argument("--check", action="store_true", help="Do not rewrite files")
    args = parser.parse_args(argv)

    black = ["black", "--line-length", MAX_LINE_LENGTH]
    if args.check:
        black.append("--check")
    failures = [
        run_tool(black + TARGETS, "Black"),
        run_tool(["flake8", "--max-line-length", MAX_LINE_LENGTH] + TARGETS, "Flake8"),
    ]
    return 1 if any(failures) else 0


if __name__ == "__main__":
    sys.exit(main())
