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

"""Compression policy for package archives.

The policy decides two things: the default file extension of the package
archive and the tarfile mode used to write it and read it back on install.

Example:
    >>> from cmdpack.compression import Compression
    >>> Compression.from_name("gzip").extension
    'tar.gz'
"""

from __future__ import annotations

from enum import Enum

from cmdpack.exceptions import ConfigError


class Compression(Enum):
    """Supported archive compressions.

    Each member's value is a (extension, tarfile mode suffix) pair.
    """

    NONE = ("tar", "")
    GZIP = ("tar.gz", "gz")
    BZIP2 = ("tar.bz2", "bz2")
    XZ = ("tar.xz", "xz")

    @property
    def extension(self) -> str:
        """File extension mandated by this compression (no leading dot)."""
        return self.value[0]

    @property
    def tar_mode(self) -> str:
        """Suffix for tarfile.open modes ('w:gz', 'r:bz2', ...)."""
        return self.value[1]

    def write_mode(self) -> str:
        return f"w:{self.tar_mode}" if self.tar_mode else "w"

    def read_mode(self) -> str:
        return f"r:{self.tar_mode}" if self.tar_mode else "r"

    @classmethod
    def from_name(cls, name: str | Compression) -> Compression:
        """Parse a compression name case-insensitively.

        Args:
            name: Member name such as "gzip" or "BZIP2", or a member.

        Returns:
            The matching Compression member.

        Raises:
            ConfigError: If the name does not match any member.
        """
        if isinstance(name, cls):
            return name
        if name is None:
            raise ConfigError("Compression name must not be empty")
        try:
            return cls[str(name).strip().upper()]
        except KeyError as err:
            supported = ", ".join(member.name.lower() for member in cls)
            raise ConfigError(
                f"Unknown compression: {name!r}. Supported: {supported}"
            ) from err
