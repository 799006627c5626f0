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

"""cmdpack - command-line package assembler

A Python-based CLI tool that assembles a command-line application package
from resolved dependency configurations, resource files, and directory
scaffolding, archives it, and installs it locally.

cmdpack provides:

- YAML package descriptors with organization-wide defaults
- Convention-driven defaults for names, paths, and extensions
- Token substitution in staged resources
- tar, tar.gz, tar.bz2, and tar.xz archives with or without a root directory
- Local install and clean-install

Quick Start:
Validate a descriptor:

    $ cmdpack validate package.yaml

Build the archive:

    $ cmdpack package package.yaml

For full CLI documentation:

    $ cmdpack --help

For more details, see the individual module docstrings.
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "cmdpack - command-line package assembler"

# Re-export commonly used functions for convenience
from cmdpack.compression import Compression
from cmdpack.config import load_effective_config
from cmdpack.convention import PackageConvention, Project, ResolvedConvention
from cmdpack.core import Pipeline, load_package, plan_package, run_stage
from cmdpack.exceptions import (
    CmdPackError,
    ConfigError,
    PackagingError,
    ResolutionError,
)
from cmdpack.results import (
    AssembleResult,
    CleanResult,
    InstallResult,
    PackageResult,
    ValidationResult,
)
from cmdpack.validation import validate_descriptor

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "AssembleResult",
    "CleanResult",
    "InstallResult",
    "PackageResult",
    "ValidationResult",
    "Compression",
    "PackageConvention",
    "Project",
    "ResolvedConvention",
    "Pipeline",
    "load_package",
    "plan_package",
    "run_stage",
    "validate_descriptor",
    "load_effective_config",
    "CmdPackError",
    "ConfigError",
    "PackagingError",
    "ResolutionError",
]
