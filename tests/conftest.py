"""
Pytest configuration and shared fixtures for cmdpack tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from cmdpack.convention import PackageConvention, Project
from cmdpack.logging import SilentLogger, set_global_logger
from cmdpack.resolve.declared import DeclaredConfigurations


@pytest.fixture(autouse=True)
def _silent_global_logger():
    """Reset the global logger so tests never inherit CLI verbosity."""
    set_global_logger(SilentLogger())
    yield
    set_global_logger(SilentLogger())


@pytest.fixture(autouse=True)
def _isolated_user_config(tmp_path: Path, monkeypatch):
    """Point the user settings store at a file that does not exist."""
    monkeypatch.setenv("CMDPACK_USER_CONFIG", str(tmp_path / "no-user.yaml"))


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def sample_descriptor_data() -> dict[str, Any]:
    """
    Provide sample package descriptor data.

    Returns a complete descriptor structure for testing.
    """
    return {
        "apiVersion": "cmdpack/v1",
        "project": {"name": "svc", "version": "1.0"},
        "configurations": {
            "lib": {"files": ["libs/*.jar"]},
        },
        "package": {
            "resources": ["src/cmdline/resources"],
            "folders": ["logs"],
            "replacement_tokens": {"PORT": 8080},
        },
    }


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("package.yaml", {"key": "value"})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create


@pytest.fixture
def make_project(tmp_test_dir: Path):
    """
    Factory fixture for Project instances rooted in the temp directory.

    Usage:
        project = make_project(version="2.0", tasks={"jar"})
    """

    def _make(**overrides: Any) -> Project:
        values: dict[str, Any] = {
            "name": "svc",
            "version": "1.0",
            "project_dir": tmp_test_dir,
        }
        values.update(overrides)
        if "tasks" in values:
            values["tasks"] = frozenset(values["tasks"])
        return Project(**values)

    return _make


@pytest.fixture
def make_convention(make_project):
    """
    Factory fixture for a configured PackageConvention.

    Usage:
        convention = make_convention({"compression": "xz"})
    """

    def _make(options: dict[str, Any] | None = None, **project_overrides: Any):
        return PackageConvention(make_project(**project_overrides)).configure(
            options or {}
        )

    return _make


@pytest.fixture
def make_resolver(tmp_test_dir: Path):
    """Factory fixture for a DeclaredConfigurations resolver."""

    def _make(configurations: dict[str, Any] | None = None) -> DeclaredConfigurations:
        return DeclaredConfigurations(
            tmp_test_dir, tmp_test_dir / "build" / "cache", configurations
        )

    return _make
