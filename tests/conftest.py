"""Pytest configuration and shared fixtures."""

import shutil
import stat
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Generator

import pytest


def write_script(path: Path, body: str = "exit 0") -> Path:
    """Write an executable shell script.

    Args:
        path: Script location. Parent directories are created.
        body: Shell commands run by the script.

    Returns:
        Path to the script.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory that is cleaned up after the test.

    Yields:
        Canonical path to the temporary directory.
    """
    temp_path = Path(tempfile.mkdtemp()).resolve()
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def maven_home(temp_dir: Path) -> Path:
    """Create a Maven installation whose ``bin/mvn`` prints one argument per line.

    Args:
        temp_dir: Temporary directory fixture.

    Returns:
        Path to the Maven home directory.
    """
    home = temp_dir / "maven"
    write_script(home / "bin" / "mvn", 'for arg in "$@"; do echo "$arg"; done')
    return home


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """Create a project directory containing a ``pom.xml``.

    Args:
        temp_dir: Temporary directory fixture.

    Returns:
        Path to the project directory.
    """
    project = temp_dir / "project"
    project.mkdir()
    (project / "pom.xml").write_text("<project/>\n", encoding="utf-8")
    return project


@pytest.fixture
def make_script() -> Callable[[Path, str], Path]:
    """Factory for executable shell scripts at a given path.

    Returns:
        Function taking a path and a script body and returning the path.
    """
    return write_script


@pytest.fixture
def fake_executable(temp_dir: Path) -> Callable[[str], Path]:
    """Factory for throwaway executables.

    Args:
        temp_dir: Temporary directory fixture.

    Returns:
        Function taking a shell script body and returning the script path.
    """
    counter = 0

    def factory(body: str) -> Path:
        nonlocal counter
        counter += 1
        return write_script(temp_dir / "bin" / f"fake-mvn-{counter}", body)

    return factory
