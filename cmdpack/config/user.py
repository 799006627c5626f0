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

"""User-level settings store.

Settings that belong to the person running the build rather than to the
package (for example, where packages get installed locally) live in a YAML
file outside the project:

- $CMDPACK_USER_CONFIG, if set (may come from a .env file)
- otherwise ~/.cmdpack/user.yaml

Keys are looked up by dotted path. Both nested mappings and flat dotted keys
are accepted, so these two files are equivalent:

    top:
      install:
        dir: /opt/apps

    top.install.dir: /opt/apps
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from cmdpack.config.loader import _load_yaml_file
from cmdpack.exceptions import ConfigError

USER_CONFIG_ENV = "CMDPACK_USER_CONFIG"
INSTALL_DIR_KEY = "top.install.dir"


def default_user_config_path() -> Path:
    """Return the user settings file location.

    Loads a .env file from the working directory first so that
    CMDPACK_USER_CONFIG can be set per checkout.
    """
    load_dotenv()
    override = os.getenv(USER_CONFIG_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".cmdpack" / "user.yaml"


def load_user_config(path: Path | None = None) -> dict[str, Any]:
    """Load the user settings file.

    Args:
        path: Explicit settings file. Default: default_user_config_path().

    Returns:
        The parsed settings, or an empty dict when the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a YAML mapping.
    """
    from cmdpack.logging import get_global_logger

    logger = get_global_logger()
    if path is None:
        path = default_user_config_path()

    if not path.exists():
        logger.debug("CONFIG", f"No user settings at {path}")
        return {}

    logger.verbose("CONFIG", f"Loading user settings: {path}")
    data = _load_yaml_file(path)
    if not isinstance(data, dict):
        raise ConfigError(f"User settings must be a mapping (dict): {path}")
    return data


def lookup_setting(settings: dict[str, Any], key: str) -> Any:
    """Look up a dotted key in the settings.

    Args:
        settings: Parsed user settings.
        key: Dotted key path, e.g. "top.install.dir".

    Returns:
        The value, or None when any segment is missing.
    """
    if key in settings:
        return settings[key]

    node: Any = settings
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node
