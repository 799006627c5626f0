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

"""Package stage: archive the staging tree.

This module packs the tree produced by the assemble stage
(assemble_package_file) into package_file using the convention's
compression.

Design Principles:
    - The archive source is exactly the assemble stage's output directory
    - The archive is overwritten in place on every run
    - include_root decides whether entries carry the staging directory name

Example:
    Basic usage:
        ```python
        from cmdpack.build.packager import create_package

        result = create_package(resolved)
        print(f"Package: {result.package_path}")
        ```
"""

from __future__ import annotations

import tarfile

from cmdpack.build.archive import pack
from cmdpack.convention import ResolvedConvention
from cmdpack.exceptions import PackagingError
from cmdpack.logging import Logger
from cmdpack.results import PackageResult


def release_info(convention: ResolvedConvention) -> dict[str, object]:
    """Describe how the archive is published as an artifact."""
    return {
        "name": convention.base_package_name,
        "extension": convention.package_extension,
        "configurations": list(convention.artifact_configurations),
    }


def create_package(
    convention: ResolvedConvention, logger: Logger | None = None
) -> PackageResult:
    """Create the package archive from the staging tree.

    Args:
        convention: Finalized convention.
        logger: Logger to use. Default: the global logger.

    Returns:
        PackageResult with the archive path and release info.

    Raises:
        PackagingError: If the staging tree is missing or the archive
            cannot be written.
    """
    from cmdpack.logging import get_global_logger

    if logger is None:
        logger = get_global_logger()

    staging_dir = convention.assemble_package_file
    package_file = convention.package_file

    if not staging_dir.is_dir():
        raise PackagingError(
            f"Staging directory not found: {staging_dir}. "
            f"Run 'cmdpack assemble' first."
        )

    logger.step(1, 2, "Creating archive...")
    logger.verbose(
        "PACKAGE",
        f"Packing {staging_dir} ({convention.compression.name.lower()}, "
        f"include_root={convention.include_root})",
    )

    try:
        pack(
            staging_dir,
            package_file,
            convention.compression,
            include_root=convention.include_root,
        )
    except (OSError, tarfile.TarError) as err:
        raise PackagingError(f"Could not create {package_file}: {err}") from err

    logger.step(2, 2, "Package complete")
    logger.log(convention.log_level, f"Created package [{package_file}]")

    return PackageResult(
        package_name=convention.package_name,
        staging_dir=staging_dir,
        package_path=package_file,
        compression=convention.compression.name.lower(),
        include_root=convention.include_root,
        release_info=release_info(convention),
        status="success",
    )
