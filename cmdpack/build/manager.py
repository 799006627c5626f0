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

"""Assemble stage: build the exploded package in the staging directory.

This module executes the resource plan against the filesystem, producing
the staging tree at assemble_package_file.

Private Helpers:
    - _copy_into: Copy a file or a directory's contents into a directory
    - _execute_operation: Run one planned operation

Design Principles:
    - The staging tree is rebuilt by copying everything again on every run;
      files left over from earlier runs are not removed
    - Copies overwrite existing files, so later operations win
    - Token substitution only happens for entries that ask for it and only
      when the token set is non-empty
    - Any failing operation aborts the stage; work already done stays on disk
    - Files directly inside any bin/ directory are made readable and
      executable for everyone

Example:
    from cmdpack.build import assemble_package

    result = assemble_package(resolved, resolver)
    print(f"Assembled: {result.staging_dir}")
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
import shutil
import stat

from cmdpack.build.planner import (
    CopyConfiguration,
    CopyResource,
    MakeDirectory,
    Operation,
    plan_resources,
)
from cmdpack.build.tokens import copy_with_tokens
from cmdpack.convention import ResolvedConvention
from cmdpack.exceptions import PackagingError
from cmdpack.logging import Logger
from cmdpack.resolve.base import ConfigurationResolver
from cmdpack.results import AssembleResult

# ugo+rx
EXECUTABLE_BITS = (
    stat.S_IRUSR
    | stat.S_IXUSR
    | stat.S_IRGRP
    | stat.S_IXGRP
    | stat.S_IROTH
    | stat.S_IXOTH
)


def _copy_file(source: Path, dest: Path, tokens: Mapping[str, str] | None) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    # A read-only copy from an earlier run cannot be opened for writing
    if dest.is_symlink() or dest.is_file():
        dest.unlink()
    if tokens:
        copy_with_tokens(source, dest, tokens)
    else:
        shutil.copy2(source, dest)


def _copy_into(
    source: Path, dest_dir: Path, tokens: Mapping[str, str] | None = None
) -> int:
    """Copy a file, or the contents of a directory, into dest_dir.

    Args:
        source: File or directory to copy.
        dest_dir: Destination directory (created if missing).
        tokens: Replacement tokens to apply, or None for a plain copy.

    Returns:
        Number of files copied. A missing source copies nothing.

    Raises:
        OSError: If a copy fails.
    """
    from cmdpack.logging import get_global_logger

    logger = get_global_logger()

    if not source.exists():
        logger.verbose("ASSEMBLE", f"Source not found, nothing to copy: {source}")
        return 0

    dest_dir.mkdir(parents=True, exist_ok=True)

    if source.is_file():
        _copy_file(source, dest_dir / source.name, tokens)
        logger.debug("ASSEMBLE", f"  Copied file: {source.name}")
        return 1

    copied = 0
    for item in sorted(source.rglob("*")):
        target = dest_dir / item.relative_to(source)
        if item.is_dir():
            target.mkdir(parents=True, exist_ok=True)
        else:
            _copy_file(item, target, tokens)
            copied += 1
    logger.debug("ASSEMBLE", f"  Copied directory: {source} ({copied} file(s))")
    return copied


def _execute_operation(
    operation: Operation, convention: ResolvedConvention
) -> int:
    """Run one planned operation and return the number of files copied."""
    from cmdpack.logging import get_global_logger

    logger = get_global_logger()

    if isinstance(operation, CopyConfiguration):
        label = "artifacts" if operation.artifacts else "files"
        logger.verbose(
            "ASSEMBLE",
            f"Copying {operation.configuration!r} {label} -> {operation.destination}",
        )
        return sum(_copy_into(f, operation.destination) for f in operation.files)

    if isinstance(operation, CopyResource):
        tokens = None
        if operation.replace_tokens and convention.replacement_tokens:
            tokens = convention.replacement_tokens
        logger.verbose(
            "ASSEMBLE",
            f"Copying resource {operation.source} -> {operation.destination}"
            + (" (tokens)" if tokens else ""),
        )
        return _copy_into(operation.source, operation.destination, tokens)

    if isinstance(operation, MakeDirectory):
        operation.path.mkdir(parents=True, exist_ok=True)
        logger.verbose("ASSEMBLE", f"Created folder: {operation.path}")
        return 0

    raise TypeError(f"Unknown operation: {operation!r}")


def make_bin_executable(root: Path) -> int:
    """Add read and execute permission for everyone on bin/* files.

    Only files whose parent directory is named 'bin' are affected, at any
    depth below root. Write bits are left as they are.

    Args:
        root: Tree to scan.

    Returns:
        Number of files updated.

    Raises:
        OSError: If a chmod fails.
    """
    count = 0
    if not root.exists():
        return count
    for p in root.rglob("*"):
        if p.parent.name == "bin" and p.is_file():
            p.chmod(stat.S_IMODE(p.stat().st_mode) | EXECUTABLE_BITS)
            count += 1
    return count


def execute_plan(operations: list[Operation], convention: ResolvedConvention) -> int:
    """Execute operations in order, then normalize bin/ permissions.

    Returns:
        Number of files copied.

    Raises:
        PackagingError: On the first failing operation.
    """
    copied = 0
    for operation in operations:
        try:
            copied += _execute_operation(operation, convention)
        except OSError as err:
            raise PackagingError(
                f"{operation.kind} failed: {err}"
            ) from err

    try:
        make_bin_executable(convention.assemble_package_file)
    except OSError as err:
        raise PackagingError(
            f"Could not set bin/ permissions in {convention.assemble_package_file}: {err}"
        ) from err

    return copied


def assemble_package(
    convention: ResolvedConvention,
    resolver: ConfigurationResolver,
    logger: Logger | None = None,
) -> AssembleResult:
    """Assemble the exploded package into the staging directory.

    This is the main entry point for the assemble stage. It:

    1. Plans the operations (validates resources, resolves configurations)
    2. Creates the staging directory
    3. Copies configurations, then resources, then creates folders
    4. Makes bin/* files executable

    Args:
        convention: Finalized convention.
        resolver: Resolver for the configuration bindings.
        logger: Logger to use. Default: the global logger.

    Returns:
        AssembleResult describing the staging tree.

    Raises:
        ConfigError: If a resource entry is invalid (nothing is written).
        ResolutionError: If a configuration cannot be resolved.
        PackagingError: If a filesystem operation fails.
    """
    from cmdpack.logging import get_global_logger

    if logger is None:
        logger = get_global_logger()

    logger.step(1, 3, "Planning resources...")
    operations = plan_resources(convention, resolver)

    staging_dir = convention.assemble_package_file
    logger.step(2, 3, "Copying resources...")
    try:
        staging_dir.mkdir(parents=True, exist_ok=True)
    except OSError as err:
        raise PackagingError(
            f"Could not create staging directory {staging_dir}: {err}"
        ) from err

    files_copied = execute_plan(operations, convention)

    logger.step(3, 3, "Package assembled")
    logger.log(convention.log_level, f"Assembled package [{staging_dir}]")

    return AssembleResult(
        package_name=convention.package_name,
        staging_dir=staging_dir,
        operations=len(operations),
        files_copied=files_copied,
        status="success",
    )
