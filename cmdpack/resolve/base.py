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

"""Configuration resolver protocol for cmdpack.

The packaging stages never decide which files belong to a configuration.
They ask a ConfigurationResolver, which is owned by the host (or, when
cmdpack runs standalone, by DeclaredConfigurations built from the
descriptor).

Example:
    Implementing a custom resolver:
        ```python
        from pathlib import Path

        class StaticResolver:
            def __init__(self, files):
                self._files = files

            def has_configuration(self, name):
                return name in self._files

            def resolve(self, name):
                return list(self._files[name])

            def artifacts(self, name):
                return []

            def publish(self, name, artifact):
                pass
        ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class ConfigurationResolver(Protocol):
    """Protocol for turning named configurations into concrete files."""

    def has_configuration(self, name: str) -> bool:
        """Return True if the configuration is declared.

        Bindings naming undeclared configurations are skipped by the planner.
        """
        ...

    def resolve(self, name: str) -> list[Path]:
        """Resolve a declared configuration to its dependency files.

        Args:
            name: Configuration name (e.g., "lib").

        Returns:
            The resolved files, possibly empty.

        Raises:
            ResolutionError: If the configuration cannot be resolved.
        """
        ...

    def artifacts(self, name: str) -> list[Path]:
        """Return the files of artifacts published by the configuration.

        Raises:
            ResolutionError: If a declared artifact file is missing.
        """
        ...

    def publish(self, name: str, artifact: Path) -> None:
        """Register an artifact file as published by the configuration."""
        ...
