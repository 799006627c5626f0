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

"""Resource planning for the assemble stage.

This module expands a resolved convention into a flat, ordered list of
operations. Nothing here touches the staging tree; the assemble stage
executes the plan.

Plan Order:

1. Configuration bindings, in insertion order. Each binding yields one
   CopyConfiguration for the resolved files (if any) and one for the
   configuration's artifact files (if any). Both target the same directory
   and are not deduplicated.
2. Resource entries, in declared order (CopyResource).
3. Folders, in declared order (MakeDirectory).

Resources therefore overwrite files brought in by configurations, and
folder creation happens last.

Resource entries are validated before any configuration is resolved, so a
missing 'from' fails the plan before any side effect.

Example:
    ```python
    from cmdpack.build.planner import plan_resources

    for operation in plan_resources(resolved, resolver):
        print(operation.kind, operation)
    ```
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import os
from pathlib import Path
from typing import ClassVar, Union

from cmdpack.convention import (
    BindingTarget,
    ResolvedConvention,
    ResourceSpec,
    _as_bool,
)
from cmdpack.exceptions import ConfigError
from cmdpack.resolve.base import ConfigurationResolver


@dataclass(frozen=True)
class ResourceEntry:
    """A resource source normalized to a single record type."""

    source: Path
    into: Path
    replace_tokens: bool = True


@dataclass(frozen=True)
class CopyConfiguration:
    """Copy files of a configuration into a directory."""

    kind: ClassVar[str] = "copy-resolved-configuration"

    configuration: str
    files: tuple[Path, ...]
    destination: Path
    artifacts: bool = False


@dataclass(frozen=True)
class CopyResource:
    """Copy a resource file or directory, optionally substituting tokens."""

    kind: ClassVar[str] = "copy-resource-entry"

    source: Path
    destination: Path
    replace_tokens: bool


@dataclass(frozen=True)
class MakeDirectory:
    """Create a directory in the staging tree (idempotent)."""

    kind: ClassVar[str] = "make-directory"

    path: Path


Operation = Union[CopyConfiguration, CopyResource, MakeDirectory]


def normalize_resource(spec: ResourceSpec, convention: ResolvedConvention) -> ResourceEntry:
    """Normalize a plain or structured resource spec.

    A plain path becomes {from: path}. Missing 'into' defaults to the
    staging root; missing 'replace_tokens' defaults to True.

    Raises:
        ConfigError: If the spec has no 'from' or replace_tokens is not a boolean.
    """
    into: Path = convention.assemble_package_file
    replace_tokens = True

    if isinstance(spec, Mapping):
        source = spec.get("from")
        if spec.get("into"):
            into = convention.file(spec["into"])
        if spec.get("replace_tokens") is not None:
            replace_tokens = _as_bool("replace_tokens", spec["replace_tokens"])
    else:
        source = spec

    if source is None or (isinstance(source, str) and not source.strip()):
        raise ConfigError(f"missing 'from' for resource {spec!r}")

    if not isinstance(source, (str, os.PathLike)):
        raise ConfigError(
            f"resource 'from' must be a path, got {type(source).__name__}: {spec!r}"
        )

    return ResourceEntry(
        source=convention.file(source), into=into, replace_tokens=replace_tokens
    )


def binding_destination(target: BindingTarget, convention: ResolvedConvention) -> Path:
    """Resolve where a configuration binding copies to.

    A str is relative to the staging root; a Path is a literal directory.
    """
    if isinstance(target, Path):
        return convention.file(target)
    if not target:
        return convention.assemble_package_file
    return convention.assemble_package_file / target


def plan_resources(
    convention: ResolvedConvention, resolver: ConfigurationResolver
) -> list[Operation]:
    """Build the ordered operation plan for the assemble stage.

    Args:
        convention: Finalized convention.
        resolver: Resolver for configuration bindings.

    Returns:
        Operations in execution order.

    Raises:
        ConfigError: If a resource entry has no 'from'.
        ResolutionError: If a declared configuration cannot be resolved.
    """
    from cmdpack.logging import get_global_logger

    logger = get_global_logger()

    entries = [normalize_resource(spec, convention) for spec in convention.resources]

    operations: list[Operation] = []

    for name, target in convention.resources_configurations:
        if not resolver.has_configuration(name):
            logger.debug("PLAN", f"Configuration {name!r} not declared, skipping")
            continue

        destination = binding_destination(target, convention)

        files = resolver.resolve(name)
        if files:
            operations.append(
                CopyConfiguration(
                    configuration=name, files=tuple(files), destination=destination
                )
            )

        artifact_files = resolver.artifacts(name)
        if artifact_files:
            operations.append(
                CopyConfiguration(
                    configuration=name,
                    files=tuple(artifact_files),
                    destination=destination,
                    artifacts=True,
                )
            )

    for entry in entries:
        operations.append(
            CopyResource(
                source=entry.source,
                destination=entry.into,
                replace_tokens=entry.replace_tokens,
            )
        )

    for folder in convention.folders:
        operations.append(MakeDirectory(path=convention.assemble_package_file / folder))

    logger.debug("PLAN", f"Planned {len(operations)} operation(s)")
    return operations
