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

"""Configuration loading for cmdpack.

This package provides tools for loading package descriptors and the
user-level settings store:

  - Organization-wide defaults (defaults/org.yaml)
  - Package descriptor (package.yaml)
  - User settings (~/.cmdpack/user.yaml or $CMDPACK_USER_CONFIG)

Public API:

- load_effective_config: Load and merge configuration for a descriptor
- load_user_config: Load the user settings store
- lookup_setting: Read a dotted key from user settings

Example:
    Basic usage:

        from pathlib import Path
        from cmdpack.config import load_effective_config

        config = load_effective_config(Path("package.yaml"))
        print(config["package"]["compression"])  # "gzip"

"""

from .loader import load_effective_config
from .user import INSTALL_DIR_KEY, load_user_config, lookup_setting

__all__ = [
    "load_effective_config",
    "load_user_config",
    "lookup_setting",
    "INSTALL_DIR_KEY",
]
