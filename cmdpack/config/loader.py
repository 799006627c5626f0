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

"""Package descriptor loading and merging for cmdpack.

This module implements a two-layer configuration system that allows
organization-wide packaging defaults to be overridden by each package
descriptor.

Configuration Layers:

1. **Organization defaults** (defaults/org.yaml)
    - Shared settings for every package (compression, folders, log level)
    - Optional; found by walking upward from the descriptor directory

2. **Package descriptor** (package.yaml)
    - Always required; defines the project and its package options
    - Overrides organization defaults

Merge Behavior:

The loader performs deep merging with "last wins" semantics:

- **Dicts**: Recursively merged (keys from overlay override base)
- **Lists**: Completely replaced (NOT appended/extended)
- **Scalars**: Overwritten (strings, numbers, booleans)

Path Resolution:

The project directory (project.dir) defaults to the descriptor's directory;
a relative project.dir is resolved against it. Every other relative path in
the descriptor is later resolved against the project directory, which keeps
descriptors relocatable.

Example:
    Basic usage:
        ```python
        from pathlib import Path
        from cmdpack.config import load_effective_config

        config = load_effective_config(Path("services/svc/package.yaml"))
        print(config["project"]["name"])  # "svc"
        ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from cmdpack.exceptions import ConfigError

# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> Any:
    """Loads a YAML file and returns the parsed Python object.

    Args:
        p: Path to the YAML file to load.

    Returns:
        The parsed Python object from the YAML file.

    Raises:
        ConfigError: When file does not exist, invalid YAML (parse error), or empty files.
    """
    if not p.exists():
        raise ConfigError(f"file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    return data


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep-merges two dicts with "overlay wins" semantics.

    Merge behavior:

    - dict + dict -> deep merge
    - list + list -> overlay REPLACES base (not concatenated)
    - everything else -> overlay overwrites base

    This function does not mutate inputs; returns a new dict.

    Args:
        base: The base dictionary.
        overlay: The overlay dictionary that takes precedence.

    Returns:
        A new dictionary with the merged contents.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            # Replace lists and scalars entirely
            result[k] = v
    return result


# -------------------------------
# Defaults discovery
# -------------------------------


def _find_defaults_root(start_dir: Path) -> Path | None:
    """Walks upward from start_dir looking for a defaults/org.yaml file.

    Args:
        start_dir: The directory to start searching from.

    Returns:
        The defaults/ directory if found, None otherwise.
    """
    for parent in [start_dir] + list(start_dir.parents):
        candidate = parent / "defaults" / "org.yaml"
        if candidate.exists():
            return parent / "defaults"
    return None


# -------------------------------
# Path resolution
# -------------------------------


def _resolve_project_dir(cfg: dict[str, Any], descriptor_dir: Path) -> None:
    """Pin project.dir to an absolute path.

    Missing project.dir means the descriptor directory. A relative value is
    resolved against the descriptor directory. Modifies cfg in place.
    """
    project = cfg.setdefault("project", {})
    if not isinstance(project, dict):
        raise ConfigError("'project' must be a mapping (dict)")

    raw_dir = project.get("dir")
    if raw_dir is None or raw_dir == "":
        project["dir"] = str(descriptor_dir)
        return

    p = Path(str(raw_dir)).expanduser()
    if not p.is_absolute():
        p = (descriptor_dir / p).resolve()
    project["dir"] = str(p)


def _debug_yaml(data: dict[str, Any], title: str) -> None:
    """Dump YAML content through the debug logger."""
    from cmdpack.logging import get_global_logger

    logger = get_global_logger()
    logger.debug("CONFIG", f"--- {title} ---")
    yaml_str = yaml.dump(data, default_flow_style=False, sort_keys=False)
    for line in yaml_str.split("\n"):
        if line.strip():
            logger.debug("CONFIG", line)


# -------------------------------
# Public API
# -------------------------------


def load_effective_config(descriptor_path: Path) -> dict[str, Any]:
    """Load and merge the effective configuration for a package descriptor.

    Steps:

    1. Read the descriptor YAML.
    2. Find the defaults root by scanning upwards for 'defaults/org.yaml'.
    3. Merge: org defaults -> descriptor (dicts deep-merge, lists replace).
    4. Resolve project.dir against the descriptor directory.

    Args:
        descriptor_path: Path to the package descriptor (package.yaml).

    Returns:
        A merged configuration dict ready for the convention and the
        configuration resolver.

    Raises:
        ConfigError: On missing files, YAML parse errors, or a top-level
            value that is not a mapping.
    """
    from cmdpack.logging import get_global_logger

    logger = get_global_logger()
    descriptor_path = descriptor_path.resolve()
    descriptor_dir = descriptor_path.parent

    logger.verbose("CONFIG", f"Loading descriptor: {descriptor_path}")

    descriptor = _load_yaml_file(descriptor_path)
    if not isinstance(descriptor, dict):
        raise ConfigError(
            f"top-level YAML must be a mapping (dict): {descriptor_path}"
        )

    merged: dict[str, Any] = {}
    layers_merged = 0

    defaults_root = _find_defaults_root(descriptor_dir)
    if defaults_root:
        org_defaults_path = defaults_root / "org.yaml"
        logger.verbose("CONFIG", f"Loading: {org_defaults_path}")
        org_defaults = _load_yaml_file(org_defaults_path)
        if not isinstance(org_defaults, dict):
            raise ConfigError(
                f"top-level YAML must be a mapping (dict): {org_defaults_path}"
            )
        _debug_yaml(org_defaults, "Content from org.yaml")
        merged = _deep_merge_dicts(merged, org_defaults)
        layers_merged += 1

    _debug_yaml(descriptor, f"Content from {descriptor_path.name}")
    merged = _deep_merge_dicts(merged, descriptor)
    layers_merged += 1

    logger.verbose("CONFIG", f"Deep merging {layers_merged} layer(s)")

    _resolve_project_dir(merged, descriptor_dir)

    _debug_yaml(merged, "Final Merged Configuration")

    return merged
