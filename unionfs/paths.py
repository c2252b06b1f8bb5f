# -*- Mode:Python; indent-tabs-mode:nil; tab-width:4 -*-
#
# Copyright 2025 Canonical Ltd.
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU Lesser General Public
# License version 3 as published by the Free Software Foundation.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

"""Paths in the unified namespace of a union filesystem."""

import io
import posixpath
from collections.abc import Iterator
from typing import IO, TYPE_CHECKING, Any, Optional, Tuple

from unionfs.attributes import AccessMode, BasicAttributes

if TYPE_CHECKING:
    from unionfs.union_fs import UnionFileSystem

ROOT = "/"


def normalize(path: str) -> str:
    """Normalize a unified path string.

    Redundant separators and ``.`` components are removed, and ``..``
    components are collapsed lexically. The empty path stays empty.
    """
    if path in ("", "."):
        return ""

    normalized = posixpath.normpath(path)
    if normalized.startswith("//"):
        normalized = ROOT + normalized.lstrip("/")

    return "" if normalized == "." else normalized


class UnionPath:
    """A path in the unified namespace of a union filesystem.

    Union paths are pure until they are used to access the filesystem;
    each access is resolved against the layers of the filesystem that
    created the path.

    :param filesystem: The union filesystem the path belongs to.
    :param path: The path string.
    """

    def __init__(self, filesystem: "UnionFileSystem", path: str):
        self._filesystem = filesystem
        self._path = normalize(path)

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"UnionPath({self._path!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnionPath):
            return NotImplemented

        return self._filesystem is other._filesystem and self._path == other._path

    def __hash__(self) -> int:
        return hash((id(self._filesystem), self._path))

    def __lt__(self, other: "UnionPath") -> bool:
        return self._path < other._path

    def __truediv__(self, other: Any) -> "UnionPath":
        return self.joinpath(str(other))

    @property
    def filesystem(self) -> "UnionFileSystem":
        """Return the union filesystem this path belongs to."""
        return self._filesystem

    @property
    def name(self) -> str:
        """Return the final path component."""
        return posixpath.basename(self._path)

    @property
    def parent(self) -> "UnionPath":
        """Return the logical parent of the path."""
        return UnionPath(self._filesystem, posixpath.dirname(self._path))

    @property
    def parts(self) -> Tuple[str, ...]:
        """Return the path components, starting with the root if absolute."""
        components = tuple(part for part in self._path.split("/") if part)
        if self.is_absolute():
            return (ROOT, *components)
        return components

    def is_absolute(self) -> bool:
        """Whether the path starts at the root of the unified namespace."""
        return self._path.startswith(ROOT)

    def joinpath(self, *other: str) -> "UnionPath":
        """Combine this path with one or more path segments."""
        return UnionPath(self._filesystem, posixpath.join(self._path, *other))

    def exists(self) -> bool:
        """Whether the path exists in any layer."""
        return self._filesystem.exists(self)

    def is_dir(self) -> bool:
        """Whether the effective file is a directory."""
        return self._filesystem.is_dir(self)

    def is_file(self) -> bool:
        """Whether the effective file is a regular file."""
        return self._filesystem.is_file(self)

    def stat(self) -> BasicAttributes:
        """Return the basic attributes of the effective file."""
        return self._filesystem.read_attributes(self)

    def check_access(self, *modes: AccessMode) -> None:
        """Verify the access modes of the effective file."""
        self._filesystem.check_access(self, *modes)

    def open(self, mode: str = "r", encoding: Optional[str] = None) -> IO[Any]:
        """Open the effective file for reading.

        :param mode: Either ``"r"`` (text) or ``"rb"`` (binary).
        :param encoding: The text encoding, in text mode.
        """
        if mode not in ("r", "rb"):
            return self._filesystem.open_for_write(self)

        stream = self._filesystem.open_for_read(self)
        if mode == "rb":
            return stream
        return io.TextIOWrapper(stream, encoding=encoding)  # type: ignore[arg-type]

    def read_bytes(self) -> bytes:
        """Return the contents of the effective file as bytes."""
        with self.open("rb") as stream:
            return stream.read()

    def read_text(self, encoding: Optional[str] = None) -> str:
        """Return the contents of the effective file as text."""
        with self.open("r", encoding=encoding) as stream:
            return stream.read()

    def iterdir(self) -> Iterator["UnionPath"]:
        """Iterate over the merged entries of a directory in all layers."""
        with self._filesystem.list_directory(self) as listing:
            yield from listing

    def glob(self, pattern: str) -> Iterator["UnionPath"]:
        """Path pattern matching is not supported."""
        self._filesystem.get_path_matcher(pattern)
        return iter(())

    def match(self, pattern: str) -> bool:
        """Path pattern matching is not supported."""
        self._filesystem.get_path_matcher(pattern)
        return False

    def write_bytes(self, data: bytes) -> int:
        """Union filesystems are read-only."""
        return self._filesystem.open_for_write(self)

    def write_text(self, data: str, encoding: Optional[str] = None) -> int:
        """Union filesystems are read-only."""
        return self._filesystem.open_for_write(self)

    def touch(self, mode: int = 0o666, exist_ok: bool = True) -> None:
        """Union filesystems are read-only."""
        self._filesystem.open_for_write(self)

    def mkdir(self, mode: int = 0o777, parents: bool = False, exist_ok: bool = False):
        """Union filesystems are read-only."""
        self._filesystem.create_directory(self)

    def unlink(self, missing_ok: bool = False) -> None:
        """Union filesystems are read-only."""
        self._filesystem.delete(self)

    def rmdir(self) -> None:
        """Union filesystems are read-only."""
        self._filesystem.delete(self)

    def rename(self, target: Any) -> "UnionPath":
        """Union filesystems are read-only."""
        return self._filesystem.move(self, target)
