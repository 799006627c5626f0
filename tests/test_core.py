"""
Tests for cmdpack.core module.

Tests orchestration including:
- Stage execution order
- Loading descriptors into package targets
- Running stages end to end against a temporary project
- Prerequisite tasks and artifact publishing
"""

from __future__ import annotations

import tarfile

import pytest
import yaml

from cmdpack.core import (
    Pipeline,
    execution_order,
    load_package,
    plan_package,
    run_stage,
)
from cmdpack.exceptions import ConfigError, ResolutionError


@pytest.fixture
def project_tree(tmp_test_dir, create_yaml_file, sample_descriptor_data):
    """A project with jars, a resource dir with a token, and a descriptor."""
    libs = tmp_test_dir / "libs"
    libs.mkdir()
    (libs / "a.jar").write_text("a")
    resources = tmp_test_dir / "src" / "cmdline" / "resources"
    (resources / "bin").mkdir(parents=True)
    (resources / "bin" / "run").write_text("#!/bin/sh\n")
    (resources / "app.conf").write_text("port=@PORT@\n")

    sample_descriptor_data["package"]["install_dir"] = str(tmp_test_dir / "apps")
    return create_yaml_file("package.yaml", sample_descriptor_data)


class TestExecutionOrder:
    """Tests for stage dependencies."""

    pytestmark = pytest.mark.unit

    def test_install_runs_everything(self):
        """Test that install pulls in package and assemble."""
        assert execution_order("install") == ["assemble", "package", "install"]

    def test_clean_install_has_no_dependencies(self):
        """Test that clean-install runs alone."""
        assert execution_order("clean-install") == ["clean-install"]

    def test_unknown_stage_raises(self):
        """Test that unknown stages are rejected."""
        with pytest.raises(ConfigError, match="Unknown stage"):
            execution_order("deploy")


class TestLoadPackage:
    """Tests for building a package target from a descriptor."""

    pytestmark = pytest.mark.unit

    def test_target_from_descriptor(self, project_tree, tmp_test_dir):
        """Test that project and options come from the descriptor."""
        target = load_package(project_tree)

        assert target.project.name == "svc"
        assert target.project.project_dir == tmp_test_dir.resolve()
        assert target.convention.package_name == "svc-1.0"
        assert target.convention.options.replacement_tokens == {"PORT": "8080"}
        assert target.resolver.has_configuration("lib")

    def test_finalize_once(self, project_tree):
        """Test that the target finalizes its convention once."""
        target = load_package(project_tree)

        first = target.finalize()

        assert target.finalize() is first
        assert target.convention.finalized

    def test_missing_project_name(self, create_yaml_file):
        """Test that project.name is required."""
        path = create_yaml_file("package.yaml", {"project": {"version": "1"}})

        with pytest.raises(ConfigError, match="project.name"):
            load_package(path)

    def test_unsupported_api_version(self, create_yaml_file, sample_descriptor_data):
        """Test that other apiVersions are rejected."""
        sample_descriptor_data["apiVersion"] = "cmdpack/v9"
        path = create_yaml_file("package.yaml", sample_descriptor_data)

        with pytest.raises(ConfigError, match="Unsupported apiVersion"):
            load_package(path)

    def test_invalid_option(self, create_yaml_file, sample_descriptor_data):
        """Test that invalid options fail while loading."""
        sample_descriptor_data["package"]["compression"] = "rar"
        path = create_yaml_file("package.yaml", sample_descriptor_data)

        with pytest.raises(ConfigError, match="Unknown compression"):
            load_package(path)

    def test_install_dir_from_user_settings(
        self, create_yaml_file, sample_descriptor_data, tmp_test_dir
    ):
        """Test that the user settings file feeds install_dir."""
        user = tmp_test_dir / "user.yaml"
        user.write_text(yaml.dump({"top": {"install": {"dir": str(tmp_test_dir / "u")}}}))
        path = create_yaml_file("package.yaml", sample_descriptor_data)

        target = load_package(path, user_config_path=user)

        assert target.convention.install_dir == tmp_test_dir / "u"

    def test_tasks_enable_conventional_prerequisite(
        self, create_yaml_file, sample_descriptor_data
    ):
        """Test that a declared jar task becomes the default prerequisite."""
        sample_descriptor_data["project"]["tasks"] = ["jar", "test"]
        path = create_yaml_file("package.yaml", sample_descriptor_data)

        assert load_package(path).convention.depends_on == ["jar"]


@pytest.mark.integration
class TestRunStage:
    """End-to-end stage runs against a temporary project."""

    def test_assemble(self, project_tree, tmp_test_dir):
        """Test that assemble builds the staging tree."""
        results = run_stage("assemble", project_tree)

        staging = results["assemble"].staging_dir
        assert list(results) == ["assemble"]
        assert (staging / "lib" / "a.jar").exists()
        assert (staging / "app.conf").read_text() == "port=8080\n"
        assert (staging / "logs").is_dir()

    def test_install_runs_all_stages(self, project_tree, tmp_test_dir):
        """Test that install assembles, packages, and unpacks."""
        results = run_stage("install", project_tree)

        assert list(results) == ["assemble", "package", "install"]
        archive = results["package"].package_path
        assert archive.name == "svc-1.0.tar.gz"
        with tarfile.open(archive, "r:gz") as tf:
            assert "svc-1.0/lib/a.jar" in tf.getnames()
        installed = tmp_test_dir / "apps" / "svc-1.0"
        assert (installed / "app.conf").read_text() == "port=8080\n"

    def test_clean_install(self, project_tree, tmp_test_dir):
        """Test that clean-install removes what install created."""
        run_stage("install", project_tree)

        results = run_stage("clean-install", project_tree)

        assert results["clean-install"].existed is True
        assert not (tmp_test_dir / "apps" / "svc-1.0").exists()

    def test_package_publishes_artifact(self, project_tree):
        """Test that the archive is published to the artifact configurations."""
        target = load_package(project_tree)

        results = Pipeline(target).run("package")

        assert target.resolver.artifacts("package") == [
            results["package"].package_path
        ]

    def test_task_runner_receives_prerequisites(
        self, create_yaml_file, sample_descriptor_data, project_tree
    ):
        """Test that depends_on tasks are handed to the task runner first."""
        sample_descriptor_data["project"]["tasks"] = ["jar"]
        path = create_yaml_file("package.yaml", sample_descriptor_data)
        calls = []

        run_stage("assemble", path, task_runner=calls.append)

        assert calls == ["jar"]

    def test_resolution_failure_stops_run(
        self, create_yaml_file, sample_descriptor_data, tmp_test_dir
    ):
        """Test that a missing file aborts before packaging."""
        sample_descriptor_data["configurations"]["lib"] = {"files": ["missing.jar"]}
        path = create_yaml_file("package.yaml", sample_descriptor_data)

        with pytest.raises(ResolutionError):
            run_stage("package", path)

        assert not (tmp_test_dir / "build" / "distributions").exists()


@pytest.mark.unit
def test_plan_package(project_tree):
    """Test that planning lists operations without creating the staging tree."""
    resolved, operations = plan_package(project_tree)

    assert [op.kind for op in operations] == [
        "copy-resolved-configuration",
        "copy-resource-entry",
        "make-directory",
    ]
    assert not resolved.assemble_package_file.exists()
