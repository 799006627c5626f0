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

"""Public API return types for cmdpack.

This module defines dataclasses for return values from the stage functions
and from descriptor validation.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Note:
    Only public API return types belong in this module. Domain types (like
    ResolvedConvention or the planner operations) remain co-located with
    their related logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class AssembleResult:
    """Result from assembling the staging tree.

    Attributes:
        package_name: Derived package name.
        staging_dir: Path to the staging directory (assemble_package_file).
        operations: Number of planned operations executed.
        files_copied: Number of files copied into the tree.
        status: Always "success" for a completed stage.
    """

    package_name: str
    staging_dir: Path
    operations: int
    files_copied: int
    status: str


@dataclass(frozen=True)
class PackageResult:
    """Result from creating the package archive.

    Attributes:
        package_name: Derived package name.
        staging_dir: Tree that was packed.
        package_path: Path to the archive (package_file).
        compression: Compression name used (e.g., "gzip").
        include_root: Whether entries are prefixed with the staging dir name.
        release_info: Artifact publishing info (name, extension, configurations).
        status: Always "success" for a completed stage.
    """

    package_name: str
    staging_dir: Path
    package_path: Path
    compression: str
    include_root: bool
    release_info: dict[str, Any] = field(default_factory=dict)
    status: str = "success"


@dataclass(frozen=True)
class InstallResult:
    """Result from installing the package locally.

    Attributes:
        package_name: Derived package name.
        package_path: Archive that was unpacked.
        install_dir: Configured install directory.
        extracted_to: Directory the archive was actually unpacked into
            (the parent of install_dir when install_dir already ends in
            the package name and the archive includes its root).
        status: Always "success" for a completed stage.
    """

    package_name: str
    package_path: Path
    install_dir: Path
    extracted_to: Path
    status: str


@dataclass(frozen=True)
class CleanResult:
    """Result from removing an installed package.

    Attributes:
        install_file: Path that was deleted.
        existed: False if there was nothing to delete.
        status: Always "success" for a completed stage.
    """

    install_file: Path
    existed: bool
    status: str


@dataclass(frozen=True)
class ValidationResult:
    """Result from validating a package descriptor.

    Attributes:
        status: Validation status ("valid" or "invalid").
        errors: List of error messages (empty if valid).
        warnings: List of warning messages.
        descriptor_path: String path to the validated descriptor.
    """

    status: str
    errors: list[str]
    warnings: list[str]
    descriptor_path: str
