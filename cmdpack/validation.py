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

"""Package descriptor validation.

This module checks a descriptor's syntax and options without resolving
configurations, downloading artifacts, or touching the build directory.
This is useful for quick feedback while editing a descriptor and in CI.

Validation Checks:

- YAML syntax is valid (descriptor and org defaults)
- apiVersion is present and supported
- project.name is present
- Every package option is known and has a valid value
  (compression, log_level, bindings, tokens, ...)
- Every resource entry has a 'from'
- Configuration blocks only use known fields

Example:
    Validate a descriptor and handle results:
        ```python
        from pathlib import Path
        from cmdpack.validation import validate_descriptor

        result = validate_descriptor(Path("package.yaml"))
        if result.status == "valid":
            print("Descriptor is valid")
        else:
            for error in result.errors:
                print(f"Error: {error}")
        ```

"""

from __future__ import annotations

from pathlib import Path

from cmdpack.build.planner import normalize_resource
from cmdpack.config.loader import load_effective_config
from cmdpack.convention import LIB_CONFIGURATION, PackageConvention, Project
from cmdpack.core import SUPPORTED_API_VERSIONS
from cmdpack.exceptions import ConfigError
from cmdpack.results import ValidationResult

__all__ = ["validate_descriptor"]

CONFIGURATION_FIELDS = ("files", "urls", "artifacts")


def _result(errors: list[str], warnings: list[str], path: Path) -> ValidationResult:
    status = "valid" if not errors else "invalid"
    return ValidationResult(
        status=status, errors=errors, warnings=warnings, descriptor_path=str(path)
    )


def validate_descriptor(descriptor_path: Path) -> ValidationResult:
    """Validate a package descriptor without building anything.

    Does NOT:

    - Resolve configurations or check that their files exist
    - Download remote artifacts
    - Read the user settings store

    Args:
        descriptor_path: Path to the descriptor (package.yaml).

    Returns:
        ValidationResult with status "valid" or "invalid", the error and
            warning messages, and the descriptor path.
    """
    from cmdpack.logging import get_global_logger

    logger = get_global_logger()
    errors: list[str] = []
    warnings: list[str] = []

    logger.verbose("VALIDATE", f"Validating descriptor: {descriptor_path}")

    try:
        config = load_effective_config(descriptor_path)
    except ConfigError as err:
        errors.append(str(err))
        return _result(errors, warnings, descriptor_path)

    logger.verbose("VALIDATE", "[OK] YAML syntax is valid")

    api_version = config.get("apiVersion")
    if api_version is None:
        errors.append("Missing required field: apiVersion")
    elif api_version not in SUPPORTED_API_VERSIONS:
        expected = ", ".join(SUPPORTED_API_VERSIONS)
        errors.append(f"Unsupported apiVersion: {api_version!r} (expected: {expected})")

    project_cfg = config.get("project") or {}
    name = project_cfg.get("name")
    if not name:
        errors.append("Missing required field: project.name")
        name = "unnamed"
    if project_cfg.get("version") is None:
        warnings.append("project.version is not set; package name has no version")

    configurations = config.get("configurations") or {}
    if not isinstance(configurations, dict):
        errors.append("Field 'configurations' must be a mapping")
        configurations = {}
    for conf_name, body in configurations.items():
        if body is None:
            continue
        if not isinstance(body, dict):
            errors.append(f"configurations.{conf_name}: Must be a mapping")
            continue
        for key in body:
            if key not in CONFIGURATION_FIELDS:
                warnings.append(
                    f"configurations.{conf_name}: Unknown field {key!r} "
                    f"(expected one of: {', '.join(CONFIGURATION_FIELDS)})"
                )

    package_options = config.get("package") or {}
    if not isinstance(package_options, dict):
        errors.append("Field 'package' must be a mapping")
        return _result(errors, warnings, descriptor_path)

    project = Project(name=str(name), project_dir=Path(project_cfg["dir"]))
    convention = PackageConvention(project)
    for option, value in package_options.items():
        try:
            convention.set(option, value)
        except ConfigError as err:
            errors.append(f"package.{option}: {err}")

    resolved = convention.finalize()
    for idx, spec in enumerate(resolved.resources):
        try:
            normalize_resource(spec, resolved)
        except ConfigError as err:
            errors.append(f"package.resources[{idx}]: {err}")

    for conf_name, _ in resolved.resources_configurations:
        if conf_name not in configurations and conf_name != LIB_CONFIGURATION:
            warnings.append(
                f"package.resources_configurations: {conf_name!r} is not declared "
                "and will be skipped"
            )

    result = _result(errors, warnings, descriptor_path)
    if result.status == "valid":
        logger.verbose("VALIDATE", "[OK] Descriptor is valid")
    else:
        logger.verbose("VALIDATE", f"[ERROR] Descriptor has {len(errors)} error(s)")
    return result
