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

"""Packaging convention: options, derived defaults, and finalization.

A PackageConvention holds every packaging parameter for one package target.
Each derived value follows the same rule: the explicit value if one was set,
otherwise a default computed from other values. Derivations are plain
functions (derive_*) and are recomputed on every read, so changing the
version and reading package_name again gives the new name.

The convention has two phases:

1. Configuration: options are set freely (configure(), set(), or the
   dedicated setters).
2. Finalization: finalize() computes every derived value once and returns a
   frozen ResolvedConvention. The convention rejects further changes.

Stages only ever receive the ResolvedConvention.

Derived Defaults:

    package_name          base[-classifier]-version
    assemble_package_dir  {build}/package
    assemble_package_file {assemble_package_dir}/{package_name}
    package_dir           {build}/distributions
    package_file          {package_dir}/{package_name}.{package_extension}
    package_extension     compression extension
    install_dir           user setting top.install.dir, else {build}/install
    install_file          {install_dir}/{package_name}
    depends_on            see derive_depends_on()

Example:
    ```python
    from pathlib import Path
    from cmdpack.convention import PackageConvention, Project

    project = Project(name="svc", version="1.0", project_dir=Path("."))
    convention = PackageConvention(project)
    convention.configure({"compression": "bzip2", "folders": ["logs", "tmp"]})

    resolved = convention.finalize()
    print(resolved.package_file)  # build/distributions/svc-1.0.tar.bz2
    ```
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, fields
import os
from pathlib import Path
from types import MappingProxyType
from typing import Any, Union

from cmdpack.compression import Compression
from cmdpack.config.user import INSTALL_DIR_KEY, lookup_setting
from cmdpack.exceptions import ConfigError
from cmdpack.logging import validate_log_level

# Host task that an unset depends_on falls back to when the project has it
CONVENTIONAL_PREREQUISITE = "jar"

# Configuration staged under lib/ unless the bindings say otherwise
LIB_CONFIGURATION = "lib"

# A resource source: a plain path, or a mapping with from/into/replace_tokens
ResourceSpec = Union[str, os.PathLike, Mapping[str, Any]]

# Binding destination: str is relative to the staging root, Path is literal
BindingTarget = Union[str, Path]


class _Unset:
    """Marker for an option that was never assigned."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


@dataclass(frozen=True)
class Project:
    """What the host knows about the project being packaged.

    Attributes:
        name: Project name (default base package name).
        project_dir: Directory relative paths are resolved against.
        version: Project version (default package version).
        build_dir: Build output root. Default: {project_dir}/build.
        tasks: Names of host tasks that exist for this project.
        user_settings: Parsed user-level settings store.
    """

    name: str
    project_dir: Path
    version: str | None = None
    build_dir: Path | None = None
    tasks: frozenset[str] = frozenset()
    user_settings: Mapping[str, Any] = field(default_factory=dict)

    @property
    def build_output_root(self) -> Path:
        if self.build_dir is None:
            return self.project_dir / "build"
        return self.file(self.build_dir)

    def file(self, path: str | os.PathLike) -> Path:
        """Resolve a path against the project directory."""
        p = Path(path).expanduser()
        if p.is_absolute():
            return p
        return self.project_dir / p

    def has_task(self, name: str) -> bool:
        return name in self.tasks


@dataclass
class PackageOptions:
    """Raw packaging options. None (or UNSET) means "derive it"."""

    depends_on: list[str] | None | _Unset = UNSET
    include_root: bool = True
    base_package_name: str | None = None
    package_classifier: str | None = None
    package_version: str | None = None
    package_name: str | None = None
    assemble_package_dir: Path | None = None
    assemble_package_file: Path | None = None
    package_dir: Path | None = None
    package_file: Path | None = None
    install_dir: Path | None = None
    install_file: Path | None = None
    resources: list[ResourceSpec] = field(
        default_factory=lambda: ["src/cmdline/resources"]
    )
    folders: list[str] = field(default_factory=lambda: ["logs"])
    log_level: str = "info"
    compression: Compression = Compression.GZIP
    package_extension: str | None = None
    artifact_configurations: list[str] = field(default_factory=lambda: ["package"])
    resources_configurations: dict[str, BindingTarget] = field(
        default_factory=lambda: {LIB_CONFIGURATION: "lib"}
    )
    replacement_tokens: dict[str, str] = field(default_factory=dict)


OPTION_NAMES = frozenset(f.name for f in fields(PackageOptions))


@dataclass(frozen=True)
class ResolvedConvention:
    """Immutable, fully derived packaging convention handed to the stages."""

    project_dir: Path
    depends_on: tuple[str, ...]
    include_root: bool
    base_package_name: str
    package_classifier: str | None
    package_version: str | None
    package_name: str
    assemble_package_dir: Path
    assemble_package_file: Path
    package_dir: Path
    package_file: Path
    package_extension: str
    install_dir: Path
    install_file: Path
    resources: tuple[ResourceSpec, ...]
    folders: tuple[str, ...]
    log_level: str
    compression: Compression
    artifact_configurations: tuple[str, ...]
    resources_configurations: tuple[tuple[str, BindingTarget], ...]
    replacement_tokens: Mapping[str, str]

    def file(self, path: str | os.PathLike) -> Path:
        """Resolve a path against the project directory."""
        p = Path(path).expanduser()
        if p.is_absolute():
            return p
        return self.project_dir / p


# -------------------------------
# Derivations
# -------------------------------


def derive_package_name(
    base_package_name: str,
    package_classifier: str | None,
    package_version: str | None,
    explicit: str | None = None,
) -> str:
    """Join the non-empty identity parts with dashes unless overridden."""
    if explicit:
        return explicit
    parts = [base_package_name]
    if package_classifier:
        parts.append(package_classifier)
    parts.append(package_version)
    return "-".join(str(part) for part in parts if part)


def derive_depends_on(
    depends_on: list[str] | None | _Unset, project: Project
) -> list[str]:
    """Resolve the tri-state prerequisite setting.

    - None or an empty list: no prerequisites
    - a non-empty list: exactly that list
    - UNSET: [CONVENTIONAL_PREREQUISITE] if the project has that task, else []
    """
    if depends_on is UNSET:
        if project.has_task(CONVENTIONAL_PREREQUISITE):
            return [CONVENTIONAL_PREREQUISITE]
        return []
    if depends_on is None:
        return []
    return list(depends_on)


def derive_assemble_package_dir(project: Project, explicit: Path | None) -> Path:
    if explicit is not None:
        return project.file(explicit)
    return project.build_output_root / "package"


def derive_assemble_package_file(
    assemble_package_dir: Path, package_name: str, explicit: Path | None, project: Project
) -> Path:
    if explicit is not None:
        return project.file(explicit)
    return assemble_package_dir / package_name


def derive_package_dir(project: Project, explicit: Path | None) -> Path:
    if explicit is not None:
        return project.file(explicit)
    return project.build_output_root / "distributions"


def derive_package_extension(compression: Compression, explicit: str | None) -> str:
    if explicit:
        return explicit
    return compression.extension


def derive_package_file(
    package_dir: Path,
    package_name: str,
    package_extension: str,
    explicit: Path | None,
    project: Project,
) -> Path:
    if explicit is not None:
        return project.file(explicit)
    return package_dir / f"{package_name}.{package_extension}"


def derive_install_dir(project: Project, explicit: Path | None) -> Path:
    """Explicit value, else the user's top.install.dir, else {build}/install."""
    if explicit is not None:
        return project.file(explicit)
    configured = lookup_setting(dict(project.user_settings), INSTALL_DIR_KEY)
    if configured:
        return project.file(str(configured))
    return project.build_output_root / "install"


def derive_install_file(
    install_dir: Path, package_name: str, explicit: Path | None, project: Project
) -> Path:
    if explicit is not None:
        return project.file(explicit)
    return install_dir / package_name


# -------------------------------
# Coercion
# -------------------------------


def _as_path(value: Any) -> Path | None:
    if value is None or value == "":
        return None
    return Path(str(value)) if not isinstance(value, Path) else value


_TRUE_WORDS = frozenset({"true", "yes", "1"})
_FALSE_WORDS = frozenset({"false", "no", "0"})


def _as_bool(name: str, value: Any) -> bool:
    """Accept real booleans and the words true/false/yes/no/1/0 (any case)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (str, int)):
        word = str(value).strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ConfigError(f"'{name}' must be a boolean, got {value!r}")


def _as_optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _as_str_list(name: str, value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (str, os.PathLike)):
        return [str(value)]
    if not isinstance(value, Sequence):
        raise ConfigError(f"'{name}' must be a list, got {type(value).__name__}")
    return [str(item) for item in value]


def _as_depends_on(value: Any) -> list[str] | None | _Unset:
    if value is UNSET or value is None:
        return value
    return _as_str_list("depends_on", value)


def _as_resources(value: Any) -> list[ResourceSpec]:
    if value is None:
        return []
    if isinstance(value, (str, os.PathLike, Mapping)):
        return [value]
    if not isinstance(value, Sequence):
        raise ConfigError(
            f"'resources' must be a list, got {type(value).__name__}"
        )
    return list(value)


def _freeze_resource(spec: ResourceSpec) -> ResourceSpec:
    if isinstance(spec, Mapping):
        return MappingProxyType(dict(spec))
    return spec


def _as_bindings(value: Any) -> dict[str, BindingTarget]:
    """Normalize configuration bindings, keeping insertion order.

    A mapping value {path: <dir>} is a literal directory (Path); anything
    else is a directory relative to the staging root (str).
    """
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(
            f"'resources_configurations' must be a mapping, got {type(value).__name__}"
        )
    bindings: dict[str, BindingTarget] = {}
    for name, target in value.items():
        if isinstance(target, Mapping):
            if not target.get("path"):
                raise ConfigError(
                    f"missing 'path' for literal destination of configuration {name!r}"
                )
            bindings[str(name)] = Path(str(target["path"]))
        elif isinstance(target, Path):
            bindings[str(name)] = target
        elif target is None:
            bindings[str(name)] = ""
        else:
            bindings[str(name)] = str(target)
    return bindings


def _as_tokens(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(
            f"'replacement_tokens' must be a mapping, got {type(value).__name__}"
        )
    return {str(k): str(v) for k, v in value.items()}


_COERCERS = {
    "depends_on": _as_depends_on,
    "include_root": lambda value: _as_bool("include_root", value),
    "base_package_name": _as_optional_str,
    "package_classifier": _as_optional_str,
    "package_version": _as_optional_str,
    "package_name": _as_optional_str,
    "assemble_package_dir": _as_path,
    "assemble_package_file": _as_path,
    "package_dir": _as_path,
    "package_file": _as_path,
    "install_dir": _as_path,
    "install_file": _as_path,
    "resources": _as_resources,
    "folders": lambda value: _as_str_list("folders", value),
    "log_level": validate_log_level,
    "compression": Compression.from_name,
    "package_extension": _as_optional_str,
    "artifact_configurations": lambda value: _as_str_list(
        "artifact_configurations", value
    ),
    "resources_configurations": _as_bindings,
    "replacement_tokens": _as_tokens,
}


# -------------------------------
# Convention store
# -------------------------------


class PackageConvention:
    """Mutable packaging convention for one package target.

    Read any derived value through the properties; they are recomputed on
    every access. Call finalize() once configuration is complete.
    """

    def __init__(self, project: Project, options: PackageOptions | None = None) -> None:
        self.project = project
        self.options = options if options is not None else PackageOptions()
        self._finalized = False

    # -- mutation -------------------------------------------------------

    def _check_mutable(self) -> None:
        if self._finalized:
            raise ConfigError(
                f"Package convention for {self.project.name!r} is finalized "
                "and can no longer be changed"
            )

    def set(self, name: str, value: Any) -> None:
        """Set one option by name, coercing it to its canonical type.

        Raises:
            ConfigError: For unknown option names, invalid values, or if the
                convention has been finalized.
        """
        self._check_mutable()
        if name not in OPTION_NAMES:
            raise ConfigError(f"Unknown package option: {name!r}")
        if name == "replacement_tokens":
            self.set_replacement_tokens(value)
            return
        setattr(self.options, name, _COERCERS[name](value))

    def configure(self, values: Mapping[str, Any]) -> PackageConvention:
        """Apply a mapping of options (e.g. the descriptor's 'package' block)."""
        for name, value in values.items():
            self.set(name, value)
        return self

    def set_compression(self, value: str | Compression) -> None:
        """Set the compression by member or case-insensitive name."""
        self._check_mutable()
        self.options.compression = Compression.from_name(value)

    def set_replacement_tokens(self, tokens: Mapping[str, Any] | None) -> None:
        """Add tokens, coercing keys and values to text.

        Existing tokens with other names are kept.
        """
        self._check_mutable()
        self.options.replacement_tokens.update(_as_tokens(tokens))

    def unset_depends_on(self) -> None:
        """Return depends_on to the inferred state."""
        self._check_mutable()
        self.options.depends_on = UNSET

    # -- derived values -------------------------------------------------

    @property
    def base_package_name(self) -> str:
        return self.options.base_package_name or self.project.name

    @property
    def package_version(self) -> str | None:
        if self.options.package_version:
            return self.options.package_version
        return self.project.version

    @property
    def package_name(self) -> str:
        return derive_package_name(
            self.base_package_name,
            self.options.package_classifier,
            self.package_version,
            self.options.package_name,
        )

    @property
    def depends_on(self) -> list[str]:
        return derive_depends_on(self.options.depends_on, self.project)

    @property
    def assemble_package_dir(self) -> Path:
        return derive_assemble_package_dir(
            self.project, self.options.assemble_package_dir
        )

    @property
    def assemble_package_file(self) -> Path:
        return derive_assemble_package_file(
            self.assemble_package_dir,
            self.package_name,
            self.options.assemble_package_file,
            self.project,
        )

    @property
    def package_dir(self) -> Path:
        return derive_package_dir(self.project, self.options.package_dir)

    @property
    def package_extension(self) -> str:
        return derive_package_extension(
            self.options.compression, self.options.package_extension
        )

    @property
    def package_file(self) -> Path:
        return derive_package_file(
            self.package_dir,
            self.package_name,
            self.package_extension,
            self.options.package_file,
            self.project,
        )

    @property
    def install_dir(self) -> Path:
        return derive_install_dir(self.project, self.options.install_dir)

    @property
    def install_file(self) -> Path:
        return derive_install_file(
            self.install_dir,
            self.package_name,
            self.options.install_file,
            self.project,
        )

    @property
    def finalized(self) -> bool:
        return self._finalized

    # -- finalize -------------------------------------------------------

    def finalize(self) -> ResolvedConvention:
        """Freeze the convention and compute every derived value.

        Returns:
            The immutable ResolvedConvention used by all stages.
        """
        opts = self.options
        resolved = ResolvedConvention(
            project_dir=self.project.project_dir,
            depends_on=tuple(self.depends_on),
            include_root=opts.include_root,
            base_package_name=self.base_package_name,
            package_classifier=opts.package_classifier,
            package_version=self.package_version,
            package_name=self.package_name,
            assemble_package_dir=self.assemble_package_dir,
            assemble_package_file=self.assemble_package_file,
            package_dir=self.package_dir,
            package_file=self.package_file,
            package_extension=self.package_extension,
            install_dir=self.install_dir,
            install_file=self.install_file,
            resources=tuple(_freeze_resource(spec) for spec in opts.resources),
            folders=tuple(opts.folders),
            log_level=opts.log_level,
            compression=opts.compression,
            artifact_configurations=tuple(opts.artifact_configurations),
            resources_configurations=tuple(opts.resources_configurations.items()),
            replacement_tokens=MappingProxyType(dict(opts.replacement_tokens)),
        )
        self._finalized = True
        return resolved
