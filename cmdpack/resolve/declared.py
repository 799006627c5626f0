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

"""Configurations declared in the package descriptor.

Supported Fields (per configuration):

- files: list of paths or glob patterns, relative to the project directory.
  An explicit path that does not exist is a resolution error; a glob that
  matches nothing is simply empty.
- urls: list of URLs, or mappings {url, sha256}. Each is downloaded once
  into {build}/cache/configurations/<name>/ and reused afterwards.
- artifacts: list of files this configuration publishes.

Example descriptor:

    configurations:
      lib:
        files:
          - libs/*.jar
        urls:
          - url: https://repo.example.com/util-2.1.jar
            sha256: 9f86d081884c7d659a2feaa0c55ad015...
      runtime:
        artifacts:
          - build/libs/svc-1.0.jar
"""

from __future__ import annotations

from collections.abc import Mapping
import glob
from pathlib import Path
from typing import Any

from cmdpack.exceptions import ConfigError, ResolutionError
from cmdpack.io.download import download_file, filename_from_url, sha256_file

_GLOB_CHARS = ("*", "?", "[")


def _is_glob(pattern: str) -> bool:
    return any(ch in pattern for ch in _GLOB_CHARS)


def _as_list(name: str, key: str, value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (str, Mapping)):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(
            f"configurations.{name}.{key} must be a list, got {type(value).__name__}"
        )
    return value


class DeclaredConfigurations:
    """ConfigurationResolver backed by the descriptor's 'configurations' block."""

    def __init__(
        self,
        project_dir: Path,
        cache_dir: Path,
        configurations: Mapping[str, Any] | None = None,
    ) -> None:
        self.project_dir = project_dir
        self.cache_dir = cache_dir
        self._declared: dict[str, dict[str, Any]] = {}
        self._published: dict[str, list[Path]] = {}

        for name, body in (configurations or {}).items():
            if body is None:
                body = {}
            if not isinstance(body, Mapping):
                raise ConfigError(
                    f"configurations.{name} must be a mapping, got {type(body).__name__}"
                )
            self._declared[str(name)] = dict(body)

    def _file(self, raw: str) -> Path:
        p = Path(raw).expanduser()
        return p if p.is_absolute() else self.project_dir / p

    def has_configuration(self, name: str) -> bool:
        return name in self._declared or name in self._published

    def names(self) -> list[str]:
        return list(self._declared)

    def resolve(self, name: str) -> list[Path]:
        """Resolve files and URLs of a configuration.

        Raises:
            ResolutionError: If the configuration is not declared, an explicit
                file is missing, or a download fails.
        """
        from cmdpack.logging import get_global_logger

        logger = get_global_logger()
        if name not in self._declared:
            if name in self._published:
                return []
            raise ResolutionError(f"Configuration not declared: {name!r}")

        body = self._declared[name]
        resolved: list[Path] = []

        for entry in _as_list(name, "files", body.get("files")):
            pattern = str(entry)
            if _is_glob(pattern):
                matches = sorted(
                    Path(m) for m in glob.glob(str(self._file(pattern)), recursive=True)
                )
                logger.debug(
                    "RESOLVE", f"{name}: {pattern} matched {len(matches)} file(s)"
                )
                resolved.extend(matches)
                continue

            path = self._file(pattern)
            if not path.exists():
                raise ResolutionError(
                    f"Could not resolve configuration {name!r}: {path} does not exist"
                )
            resolved.append(path)

        for entry in _as_list(name, "urls", body.get("urls")):
            resolved.append(self._fetch(name, entry))

        logger.verbose("RESOLVE", f"Resolved {name!r} to {len(resolved)} file(s)")
        return resolved

    def _fetch(self, name: str, entry: Any) -> Path:
        from cmdpack.logging import get_global_logger

        logger = get_global_logger()
        if isinstance(entry, Mapping):
            url = entry.get("url")
            expected = entry.get("sha256")
        else:
            url, expected = entry, None
        if not url:
            raise ConfigError(f"configurations.{name}.urls entry without 'url'")

        dest_dir = self.cache_dir / name
        cached = dest_dir / filename_from_url(str(url))
        if cached.exists():
            if not expected or sha256_file(cached).lower() == str(expected).lower():
                logger.verbose("RESOLVE", f"Using cached artifact: {cached}")
                return cached
            logger.verbose("RESOLVE", f"Cached artifact is stale: {cached}")

        path, _ = download_file(
            str(url), dest_dir, expected_sha256=str(expected) if expected else None
        )
        return path

    def artifacts(self, name: str) -> list[Path]:
        """Return declared plus published artifact files of a configuration."""
        files: list[Path] = []
        body = self._declared.get(name, {})
        for entry in _as_list(name, "artifacts", body.get("artifacts")):
            path = self._file(str(entry))
            if not path.exists():
                raise ResolutionError(
                    f"Artifact of configuration {name!r} does not exist: {path}"
                )
            files.append(path)
        files.extend(self._published.get(name, []))
        return files

    def publish(self, name: str, artifact: Path) -> None:
        published = self._published.setdefault(name, [])
        if artifact not in published:
            published.append(artifact)
