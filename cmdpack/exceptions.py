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

"""Exception hierarchy for cmdpack.

This module defines a custom exception hierarchy that allows library users
to distinguish between the different ways a packaging run can fail:

- ConfigError: Descriptor or convention problems (missing 'from', unknown
  compression or log level, YAML errors, mutation after finalize)
- ResolutionError: A declared configuration cannot be turned into files
- PackagingError: Filesystem failures while assembling, archiving,
  installing, or cleaning

All exceptions inherit from CmdPackError, allowing users to catch every
cmdpack error with a single except clause if needed.

Example:
    Catching specific error types:
        ```python
        from cmdpack.core import run_stage
        from cmdpack.exceptions import ConfigError, PackagingError

        try:
            run_stage("package", Path("package.yaml"))
        except ConfigError as e:
            print(f"Configuration error: {e}")
        except PackagingError as e:
            print(f"Packaging error: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "CmdPackError",
    "ConfigError",
    "ResolutionError",
    "PackagingError",
]


class CmdPackError(Exception):
    """Base exception for all cmdpack errors.

    All cmdpack-specific exceptions inherit from this class, allowing users
    to catch all cmdpack errors with a single except clause if needed.
    """

    pass


class ConfigError(CmdPackError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, invalid structure)
    - Resource entries without a 'from' value
    - Unrecognized compression or log level names
    - Attempts to change a convention after it has been finalized

    Configuration errors are raised while the plan is being built, before
    anything on disk is touched.
    """

    pass


class ResolutionError(CmdPackError):
    """Raised when a declared configuration cannot be resolved to files.

    This exception is raised when there are problems with:

    - Explicit artifact files that do not exist
    - Remote artifact downloads (HTTP errors, checksum mismatches)

    An empty resolution is not an error; it simply contributes nothing to
    the staging tree.
    """

    pass


class PackagingError(CmdPackError):
    """Raised for filesystem failures inside a stage.

    This exception is raised when there are problems with:

    - Copying files into the staging tree
    - Creating directories
    - Writing or reading the archive
    - Deleting an installed package

    The original OSError or tarfile error is always chained as __cause__.
    """

    pass
