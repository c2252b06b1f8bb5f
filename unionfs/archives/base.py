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

"""Base classes for archive filesystem handling."""

import abc
import dataclasses
import errno
import logging
import posixpath
import stat
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import IO, Any, ClassVar, Dict, Optional

from unionfs.attributes import AccessMode, BasicAttributes

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class ArchiveEntry:
    """A member of a mounted archive.

    :param name: The normalized member name, without leading or trailing
        separators. The archive root is the empty string.
    :param is_dir: Whether the member is a directory.
    :param size: The uncompressed member size.
    :param mtime: The member modification time, as a POSIX timestamp.
    :param mode: The member permission and file type bits, if recorded.
    :param info: The archive-specific member information, if the member
        is actually stored in the archive.
    """

    name: str
    is_dir: bool
    size: int = 0
    mtime: float = 0.0
    mode: Optional[int] = None
    info: Any = None

    @property
    def is_symlink(self) -> bool:
        """Whether the member is a symbolic link."""
        return self.mode is not None and stat.S_ISLNK(self.mode)


def member_key(path: str) -> str:
    """Convert an archive path string to a normalized member name.

    Leading ".." components are dropped, so every path stays inside the
    archive.

    :param path: The path inside the archive, absolute or relative.

    :returns: The member name, or the empty string for the archive root.
    """
    return posixpath.normpath("/" + path).lstrip("/")


class ArchivePath:
    """A path inside a mounted archive.

    Archive paths keep the string they were created from (normalized), so
    absolute paths remain absolute and relative paths remain relative. Both
    forms are resolved against the archive root.

    :param archive: The archive filesystem this path belongs to.
    :param path: The path string.
    """

    def __init__(self, archive: "ArchiveFilesystem", path: str):
        self._archive = archive
        if path in ("", "."):
            self._path = ""
        else:
            self._path = posixpath.normpath(path)
            if self._path.startswith("//"):
                self._path = "/" + self._path.lstrip("/")

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"ArchivePath({self._archive.location!s}, {self._path!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ArchivePath):
            return NotImplemented

        return self._archive is other._archive and self._path == other._path

    def __hash__(self) -> int:
        return hash((id(self._archive), self._path))

    def __truediv__(self, name: str) -> "ArchivePath":
        return self.joinpath(name)

    @property
    def archive(self) -> "ArchiveFilesystem":
        """Return the archive filesystem this path belongs to."""
        return self._archive

    @property
    def key(self) -> str:
        """Return the archive member name this path refers to."""
        return member_key(self._path)

    @property
    def name(self) -> str:
        """Return the final path component."""
        return posixpath.basename(self._path)

    def is_absolute(self) -> bool:
        """Whether the path is anchored at the archive root."""
        return self._path.startswith("/")

    def joinpath(self, name: str) -> "ArchivePath":
        """Append a path component."""
        if not self._path:
            return ArchivePath(self._archive, name)

        return ArchivePath(self._archive, posixpath.join(self._path, name))

    def exists(self) -> bool:
        """Whether the path exists in the archive."""
        return self._archive.exists(self)

    def is_dir(self) -> bool:
        """Whether the path is a directory in the archive."""
        entry = self._archive.get_entry(self)
        return entry is not None and entry.is_dir

    def stat(self) -> BasicAttributes:
        """Return the basic attributes of the archive member."""
        return self._archive.read_attributes(self)

    def open(self) -> IO[bytes]:
        """Open the archive member for reading."""
        return self._archive.open(self)

    def iterdir(self) -> Iterator["ArchivePath"]:
        """Iterate over the members of an archive directory."""
        return self._archive.iterdir(self)


class ArchiveFilesystem(abc.ABC):
    """The base class for mounted archive handlers.

    An archive filesystem indexes the archive members once, when it is
    mounted. Directories implied by member names are added to the index
    even if the archive doesn't store them explicitly. Subclasses must
    implement :meth:`_load_entries`, :meth:`_open_member` and :meth:`close`.

    :param location: The archive file to mount.
    """

    archive_type: ClassVar[str]
    pattern: ClassVar[Optional[str]] = None
    """A regular expression matching archive file names this handler mounts."""

    def __init__(self, location: Path) -> None:
        self.location = location
        root = ArchiveEntry(name="", is_dir=True)
        self._entries: Dict[str, ArchiveEntry] = {"": root}
        self._children: Dict[str, Dict[str, None]] = {"": {}}

        for entry in self._load_entries():
            self._add_entry(entry)

        logger.debug(
            "mounted %s archive %s with %d entries",
            self.archive_type,
            location,
            len(self._entries) - 1,
        )

    @classmethod
    @abc.abstractmethod
    def is_archive(cls, location: Path) -> bool:
        """Verify if the given file can be mounted by this handler."""

    @abc.abstractmethod
    def _load_entries(self) -> Iterable[ArchiveEntry]:
        """Read the archive members.

        :raises OSError: If the archive can't be read.
        """

    @abc.abstractmethod
    def _open_member(self, entry: ArchiveEntry) -> IO[bytes]:
        """Open a regular archive member for reading."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release the archive file."""

    def _add_entry(self, entry: ArchiveEntry) -> None:
        if not entry.name:
            return

        parent = posixpath.dirname(entry.name)
        if parent not in self._entries or not self._entries[parent].is_dir:
            self._add_entry(ArchiveEntry(name=parent, is_dir=True))

        existing = self._entries.get(entry.name)
        # Stored members replace directories implied by their children.
        if existing is None or existing.info is None:
            self._entries[entry.name] = entry

        if entry.is_dir:
            self._children.setdefault(entry.name, {})
        self._children[parent][posixpath.basename(entry.name)] = None

    def get_path(self, path: str) -> ArchivePath:
        """Create a path in this archive.

        :param path: The path string, absolute or relative to the archive root.
        """
        return ArchivePath(self, path)

    def get_entry(self, path: ArchivePath) -> Optional[ArchiveEntry]:
        """Return the archive member for the given path, if any."""
        return self._entries.get(path.key)

    def exists(self, path: ArchivePath) -> bool:
        """Whether the given path exists in the archive."""
        return path.key in self._entries

    def _entry_or_raise(self, path: ArchivePath) -> ArchiveEntry:
        entry = self._entries.get(path.key)
        if entry is None:
            raise FileNotFoundError(
                errno.ENOENT, "No such file or directory", str(path)
            )
        return entry

    def read_attributes(self, path: ArchivePath) -> BasicAttributes:
        """Return the basic attributes of an archive member.

        :param path: The path of the archive member.

        :raises FileNotFoundError: If the member doesn't exist.
        """
        entry = self._entry_or_raise(path)

        return BasicAttributes(
            size=0 if entry.is_dir else entry.size,
            is_regular_file=not (entry.is_dir or entry.is_symlink),
            is_directory=entry.is_dir,
            is_symbolic_link=entry.is_symlink,
            is_other=False,
            last_modified_time=entry.mtime,
            last_access_time=entry.mtime,
            creation_time=entry.mtime,
        )

    def check_access(self, path: ArchivePath, *modes: AccessMode) -> None:
        """Verify the access modes of an archive member.

        Archives are mounted read-only, so write access is always denied.
        Execute access requires an execute bit in the recorded member mode;
        directories can always be traversed.

        :param path: The path of the archive member.
        :param modes: The access modes to verify.

        :raises FileNotFoundError: If the member doesn't exist.
        :raises PermissionError: If any of the access modes is denied.
        """
        entry = self._entry_or_raise(path)

        if AccessMode.WRITE in modes:
            raise PermissionError(errno.EROFS, "Read-only archive", str(path))

        if AccessMode.EXECUTE in modes and not entry.is_dir:
            if entry.mode is None or not entry.mode & 0o111:
                raise PermissionError(errno.EACCES, "Permission denied", str(path))

    def open(self, path: ArchivePath) -> IO[bytes]:
        """Open an archive member for reading.

        :param path: The path of the archive member.

        :returns: A binary, seekable, read-only stream.

        :raises FileNotFoundError: If the member doesn't exist.
        :raises IsADirectoryError: If the member is a directory.
        """
        entry = self._entry_or_raise(path)
        if entry.is_dir:
            raise IsADirectoryError(errno.EISDIR, "Is a directory", str(path))

        return self._open_member(entry)

    def iterdir(self, path: ArchivePath) -> Iterator[ArchivePath]:
        """Iterate over the members of an archive directory.

        Yielded paths are built from the given path, so members of an
        absolute directory are absolute and members of a relative
        directory are relative.

        :raises FileNotFoundError: If the directory doesn't exist.
        :raises NotADirectoryError: If the path is not a directory.
        """
        entry = self._entry_or_raise(path)
        if not entry.is_dir:
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", str(path))

        for name in list(self._children[entry.name]):
            yield path / name
