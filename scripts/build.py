#!/usr/bin/env python3
"""
Development tasks for Companion Client.

Usage: python scripts/build.py [check|test|clean|dist]
"""

import shutil
import subprocess
import sys
from pathlib import Path
from typing import Dict, Callable, List

ROOT = Path(__file__).resolve().parent.parent

ARTIFACTS = ["build", "dist", ".pytest_cache", ".mypy_cache", ".ruff_cache", "htmlcov", ".coverage"]


def run_command(command: List[str]) -> int:
    """Run a command from the project root and return its exit code."""
    print(f"$ {' '.join(command)}")
    return subprocess.run(command, cwd=ROOT).returncode


def check() -> int:
    """Lint, type-check and test."""
    for command in (
        ["ruff", "check", "src/", "tests/"],
        ["mypy", "src/"],
        ["pytest", "tests/"],
    ):
        code = run_command(command)
        if code != 0:
            return code
    return 0


def test() -> int:
    """Run tests with coverage."""
    return run_command([
        "pytest",
        "tests/",
        "--cov=companion_client",
        "--cov-report=term-missing",
    ])


def clean() -> int:
    """Remove build and cache artifacts."""
    for name in ARTIFACTS:
        path = ROOT / name
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()
    for egg_info in ROOT.glob("src/*.egg-info"):
        shutil.rmtree(egg_info)
    for cache in ROOT.rglob("__pycache__"):
        shutil.rmtree(cache, ignore_errors=True)
    return 0


def dist() -> int:
    """Build sdist and wheel after a full check."""
    code = check()
    if code != 0:
        return code
    return run_command([sys.executable, "-m", "build"])


COMMANDS: Dict[str, Callable[[], int]] = {
    "check": check,
    "test": test,
    "clean": clean,
    "dist": dist,
}


def main() -> None:
    if len(sys.argv) != 2 or sys.argv[1] not in COMMANDS:
        print(f"Usage: python scripts/build.py [{'|'.join(COMMANDS)}]")
        sys.exit(1)
    sys.exit(COMMANDS[sys.argv[1]]())


if __name__ == "__main__":
    main()
