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

"""Install and clean-install stages.

install_package() unpacks the package archive into install_dir and
clean_install() removes install_file.

If the archive includes its root directory and install_dir is already named
after the package (/opt/apps/svc-1.0), the archive is unpacked into the
parent directory so the result is /opt/apps/svc-1.0/... rather than
/opt/apps/svc-1.0/svc-1.0/...

Example:
    ```python
    from cmdpack.build.installer import clean_install, install_package

    install_package(resolved)
    clean_install(resolved)
    ```
"""

from __future__ import annotations

from pathlib import Path
import shutil
import tarfile

from cmdpack.build.archive import unpack
from cmdpack.build.manager import make_bin_executable
from cmdpack.convention import ResolvedConvention
from cmdpack.exceptions import PackagingError
from cmdpack.logging import Logger
from cmdpack.results import CleanResult, InstallResult


def extraction_dir(convention: ResolvedConvention) -> Path:
    """Directory the archive is unpacked into."""
    install_dir = convention.install_dir
    if convention.include_root and install_dir.name == convention.package_name:
        return install_dir.parent
    return install_dir


def install_package(
    convention: ResolvedConvention, logger: Logger | None = None
) -> InstallResult:
    """Unpack the package archive into the install directory.

    Args:
        convention: Finalized convention.
        logger: Logger to use. Default: the global logger.

    Returns:
        InstallResult with the configured and effective install locations.

    Raises:
        PackagingError: If the archive is missing or cannot be unpacked.
    """
    from cmdpack.logging import get_global_logger

    if logger is None:
        logger = get_global_logger()

    package_file = convention.package_file
    if not package_file.is_file():
        raise PackagingError(
            f"Package not found: {package_file}. Run 'cmdpack package' first."
        )

    dest = extraction_dir(convention)
    if dest != convention.install_dir:
        logger.verbose(
            "INSTALL",
            f"{convention.install_dir} is named after the package, unpacking into {dest}",
        )

    logger.step(1, 2, "Unpacking package...")
    try:
        unpack(package_file, dest, convention.compression)
        make_bin_executable(dest)
    except (OSError, tarfile.TarError) as err:
        raise PackagingError(
            f"Could not install {package_file} into {dest}: {err}"
        ) from err

    logger.step(2, 2, "Install complete")
    logger.log(convention.log_level, f"Installed in {convention.install_dir}")

    return InstallResult(
        package_name=convention.package_name,
        package_path=package_file,
        install_dir=convention.install_dir,
        extracted_to=dest,
        status="success",
    )


def clean_install(
    convention: ResolvedConvention, logger: Logger | None = None
) -> CleanResult:
    """Delete the installed package (install_file).

    Deleting a path that does not exist succeeds.

    Args:
        convention: Finalized convention.
        logger: Logger to use. Default: the global logger.

    Returns:
        CleanResult noting whether anything was deleted.

    Raises:
        PackagingError: If the deletion fails.
    """
    from cmdpack.logging import get_global_logger

    if logger is None:
        logger = get_global_logger()

    install_file = convention.install_file
    existed = install_file.exists() or install_file.is_symlink()

    try:
        if install_file.is_dir() and not install_file.is_symlink():
            shutil.rmtree(install_file)
        elif existed:
            install_file.unlink()
    except OSError as err:
        raise PackagingError(f"Could not delete {install_file}: {err}") from err

    logger.log(convention.log_level, f"Deleted [{install_file}]")

    return CleanResult(install_file=install_file, existed=existed, status="success")
