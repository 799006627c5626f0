# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Core orchestration for cmdpack.

This module wires a package descriptor into the packaging stages and runs
them in dependency order.

Stages:

- **assemble**: Build the staging tree. Its prerequisites are the
    convention's depends_on tasks and the configuration bindings.
- **package**: Archive the staging tree (depends on assemble). The archive
    is then published as an artifact of every artifact configuration.
- **install**: Unpack the archive locally (depends on package).
- **clean-install**: Delete the installed package (no dependencies).

The host scheduler normally owns the prerequisite tasks (for example the
task producing the project's jar). An embedding host passes a task_runner
callback to have them executed; without one they are only logged.

Design Principles:

- The convention is finalized exactly once, before the first stage runs
- Stages receive only the immutable ResolvedConvention
- A failing stage stops the run; later stages never start
- Error handling uses exceptions; CLI layer formats for user display

Example:
    Programmatic usage:
        ```python
        from pathlib import Path
        from cmdpack.core import run_stage

        results = run_stage("install", Path("package.yaml"))
        print(results["package"].package_path)
        print(results["install"].extracted_to)
        ```
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cmdpack.build.installer import clean_install, install_package
from cmdpack.build.manager import assemble_package
from cmdpack.build.packager import create_package
from cmdpack.build.planner import Operation, plan_resources
from cmdpack.config.loader import load_effective_config
from cmdpack.config.user import load_user_config
from cmdpack.convention import PackageConvention, Project, ResolvedConvention
from cmdpack.exceptions import ConfigError
from cmdpack.logging import Logger
from cmdpack.resolve.base import ConfigurationResolver
from cmdpack.resolve.declared import DeclaredConfigurations

SUPPORTED_API_VERSIONS = ("cmdpack/v1",)

# stage name -> stages it depends on
STAGE_DEPENDENCIES: dict[str, tuple[str, ...]] = {
    "assemble": (),
    "package": ("assemble",),
    "install": ("package",),
    "clean-install": (),
}

TaskRunner = Callable[[str], None]


def execution_order(stage: str) -> list[str]:
    """Return the stages to run for stage, dependencies first.

    Raises:
        ConfigError: If the stage name is unknown.
    """
    if stage not in STAGE_DEPENDENCIES:
        raise ConfigError(
            f"Unknown stage: {stage!r}. Available: {', '.join(STAGE_DEPENDENCIES)}"
        )

    order: list[str] = []

    def visit(name: str) -> None:
        for dep in STAGE_DEPENDENCIES[name]:
            visit(dep)
        if name not in order:
            order.append(name)

    visit(stage)
    return order


@dataclass
class PackageTarget:
    """Everything needed to run the stages for one package."""

    project: Project
    convention: PackageConvention
    resolver: ConfigurationResolver
    resolved: ResolvedConvention | None = None

    def finalize(self) -> ResolvedConvention:
        """Finalize the convention once and return the resolved form."""
        if self.resolved is None:
            self.resolved = self.convention.finalize()
        return self.resolved


def _project_from_config(
    config: dict[str, Any], user_settings: dict[str, Any]
) -> Project:
    project_cfg = config.get("project") or {}
    name = project_cfg.get("name")
    if not name:
        raise ConfigError("Missing required field: project.name")

    project_dir = Path(project_cfg["dir"])
    build_dir = project_cfg.get("build_dir")
    version = project_cfg.get("version")
    tasks = project_cfg.get("tasks") or []
    if isinstance(tasks, str):
        tasks = [tasks]

    return Project(
        name=str(name),
        project_dir=project_dir,
        version=str(version) if version is not None else None,
        build_dir=Path(str(build_dir)) if build_dir else None,
        tasks=frozenset(str(t) for t in tasks),
        user_settings=user_settings,
    )


def load_package(
    descriptor_path: Path, user_config_path: Path | None = None
) -> PackageTarget:
    """Load a descriptor into a configured (not yet finalized) target.

    Args:
        descriptor_path: Path to package.yaml.
        user_config_path: User settings file. Default: the standard location.

    Returns:
        A PackageTarget whose convention can still be adjusted.

    Raises:
        ConfigError: For descriptor errors or invalid package options.
    """
    from cmdpack.logging import get_global_logger

    logger = get_global_logger()
    config = load_effective_config(descriptor_path)

    api_version = config.get("apiVersion")
    if api_version is not None and api_version not in SUPPORTED_API_VERSIONS:
        raise ConfigError(
            f"Unsupported apiVersion: {api_version!r}. "
            f"Supported: {', '.join(SUPPORTED_API_VERSIONS)}"
        )

    user_settings = load_user_config(user_config_path)
    project = _project_from_config(config, user_settings)

    package_options = config.get("package") or {}
    if not isinstance(package_options, dict):
        raise ConfigError("'package' must be a mapping (dict)")
    convention = PackageConvention(project).configure(package_options)

    resolver = DeclaredConfigurations(
        project.project_dir,
        project.build_output_root / "cache" / "configurations",
        config.get("configurations"),
    )

    logger.verbose("PIPELINE", f"Loaded package target {convention.package_name!r}")
    return PackageTarget(project=project, convention=convention, resolver=resolver)


class Pipeline:
    """Runs stages of one package target in dependency order."""

    def __init__(
        self,
        target: PackageTarget,
        task_runner: TaskRunner | None = None,
        logger: Logger | None = None,
    ) -> None:
        from cmdpack.logging import get_global_logger

        self.target = target
        self.task_runner = task_runner
        self.logger = logger if logger is not None else get_global_logger()

    def run(self, stage: str) -> dict[str, Any]:
        """Run stage and everything it depends on.

        Returns:
            Stage name to stage result, in execution order.
        """
        order = execution_order(stage)
        resolved = self.target.finalize()
        self.logger.verbose("PIPELINE", f"Execution order: {' -> '.join(order)}")

        results: dict[str, Any] = {}
        for name in order:
            results[name] = self._run_one(name, resolved)
        return results

    def _run_prerequisites(self, resolved: ResolvedConvention) -> None:
        for task in resolved.depends_on:
            if self.task_runner is not None:
                self.logger.verbose("PIPELINE", f"Running prerequisite task {task!r}")
                self.task_runner(task)
            else:
                self.logger.verbose(
                    "PIPELINE", f"Prerequisite task {task!r} is expected to have run"
                )

    def _run_one(self, name: str, resolved: ResolvedConvention) -> Any:
        if name == "assemble":
            self._run_prerequisites(resolved)
            return assemble_package(resolved, self.target.resolver, logger=self.logger)

        if name == "package":
            result = create_package(resolved, logger=self.logger)
            for configuration in resolved.artifact_configurations:
                self.target.resolver.publish(configuration, result.package_path)
            return result

        if name == "install":
            return install_package(resolved, logger=self.logger)

        if name == "clean-install":
            return clean_install(resolved, logger=self.logger)

        raise ConfigError(f"Unknown stage: {name!r}")


def run_stage(
    stage: str,
    descriptor_path: Path,
    *,
    task_runner: TaskRunner | None = None,
    user_config_path: Path | None = None,
) -> dict[str, Any]:
    """Load a descriptor and run a stage with its dependencies.

    Args:
        stage: One of "assemble", "package", "install", "clean-install".
        descriptor_path: Path to package.yaml.
        task_runner: Callback that runs host prerequisite tasks by name.
        user_config_path: User settings file. Default: the standard location.

    Returns:
        Stage name to result dataclass, in execution order.

    Raises:
        ConfigError: For descriptor or convention errors.
        ResolutionError: If a configuration cannot be resolved.
        PackagingError: If a filesystem operation fails.
    """
    execution_order(stage)
    target = load_package(descriptor_path, user_config_path=user_config_path)
    return Pipeline(target, task_runner=task_runner).run(stage)


def plan_package(
    descriptor_path: Path, *, user_config_path: Path | None = None
) -> tuple[ResolvedConvention, list[Operation]]:
    """Resolve the convention and plan the assemble stage without running it.

    Configurations are resolved (remote artifacts may be downloaded into the
    cache) but the staging tree is not touched.
    """
    target = load_package(descriptor_path, user_config_path=user_config_path)
    resolved = target.finalize()
    return resolved, plan_resources(resolved, target.resolver)
