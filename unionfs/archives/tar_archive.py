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

"""Implement the tar archive handler."""

import errno
import io
import logging
import lzma
import stat
import tarfile
import threading
import zlib
from collections.abc import Iterator
from pathlib import Path
from typing import IO

from overrides import overrides

from .base import ArchiveEntry, ArchiveFilesystem, member_key

logger = logging.getLogger(__name__)

# Errors raised by tarfile and its decompressors for damaged archives.
_TAR_ERRORS = (tarfile.TarError, EOFError, zlib.error, lzma.LZMAError)


class TarArchiveFilesystem(ArchiveFilesystem):
    """The tar archive handler.

    Plain and compressed (gzip, bzip2, xz) tarballs are supported. A tar
    file object can't be shared between concurrent readers, so member
    contents are read under a lock and returned as in-memory streams.
    """

    archive_type = "tar"
    pattern = r"\.(tar|tar\.gz|tgz|tar\.bz2|tbz|tbz2|tar\.xz|txz)$"

    def __init__(self, location: Path) -> None:
        try:
            self._tar = tarfile.open(location, "r:*")
        except _TAR_ERRORS as err:
            raise OSError(f"bad tar file: {err}") from err

        self._lock = threading.Lock()
        try:
            super().__init__(location)
        except OSError:
            self._tar.close()
            raise
        except _TAR_ERRORS as err:
            self._tar.close()
            raise OSError(f"bad tar file: {err}") from err

    @classmethod
    def is_archive(cls, location: Path) -> bool:
        """Verify if the given file is a tarball."""
        return tarfile.is_tarfile(location)

    @overrides
    def _load_entries(self) -> Iterator[ArchiveEntry]:
        for member in self._tar.getmembers():
            name = member_key(member.name)
            if not name:
                continue

            if member.isdir():
                file_type = stat.S_IFDIR
            elif member.issym():
                file_type = stat.S_IFLNK
            elif member.isfile() or member.islnk():
                file_type = stat.S_IFREG
            else:
                logger.debug("skip special tar member %s", member.name)
                continue

            yield ArchiveEntry(
                name=name,
                is_dir=member.isdir(),
                size=member.size,
                mtime=float(member.mtime),
                mode=file_type | stat.S_IMODE(member.mode),
                info=member,
            )

    @overrides
    def _open_member(self, entry: ArchiveEntry) -> IO[bytes]:
        with self._lock:
            try:
                member_file = self._tar.extractfile(entry.info)
            except KeyError as err:
                # Link target is not in the archive.
                raise FileNotFoundError(
                    errno.ENOENT, "No such file or directory", entry.name
                ) from err

            if member_file is None:
                raise OSError(errno.EINVAL, "Not a regular file", entry.name)

            try:
                with member_file:
                    return io.BytesIO(member_file.read())
            except _TAR_ERRORS as err:
                raise OSError(
                    errno.EIO, f"bad tar member: {err}", entry.name
                ) from err

    @overrides
    def close(self) -> None:
        self._tar.close()
