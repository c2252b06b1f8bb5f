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

"""Implement the zip archive handler."""

import datetime
import errno
import zipfile
import zlib
from collections.abc import Iterator
from pathlib import Path
from typing import IO, Tuple

from overrides import overrides

from .base import ArchiveEntry, ArchiveFilesystem, member_key

# Errors raised by zipfile for damaged archives.
_ZIP_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, ValueError)


def _timestamp(date_time: Tuple[int, int, int, int, int, int]) -> float:
    """Convert a zip member date and time to a POSIX timestamp.

    A zero DOS date is decoded by zipfile as month and day 0, which is
    mapped to the first day of the year.
    """
    year, month, day, hour, minute, second = date_time
    return datetime.datetime(
        year, max(month, 1), max(day, 1), hour, minute, second
    ).timestamp()


class ZipArchiveFilesystem(ArchiveFilesystem):
    """The zip archive handler.

    Java archives are zip files and are mounted by this handler too.
    Concurrent reads rely on the locking done by ``zipfile`` when several
    members are opened from the same archive.
    """

    archive_type = "zip"
    pattern = r"\.(zip|jar)$"

    def __init__(self, location: Path) -> None:
        try:
            self._zip = zipfile.ZipFile(location, "r")
        except zipfile.BadZipFile as err:
            raise OSError(f"bad zip file: {err}") from err

        try:
            super().__init__(location)
        except OSError:
            self._zip.close()
            raise
        except _ZIP_ERRORS as err:
            self._zip.close()
            raise OSError(f"bad zip file: {err}") from err

    @classmethod
    def is_archive(cls, location: Path) -> bool:
        """Verify if the given file is a zip archive."""
        return zipfile.is_zipfile(location)

    @overrides
    def _load_entries(self) -> Iterator[ArchiveEntry]:
        for info in self._zip.infolist():
            name = member_key(info.filename)
            if not name:
                continue

            # The high two bytes of external_attr hold the unix mode, if
            # the archive was created on a unix system.
            mode = info.external_attr >> 16

            yield ArchiveEntry(
                name=name,
                is_dir=info.is_dir(),
                size=info.file_size,
                mtime=_timestamp(info.date_time),
                mode=mode or None,
                info=info,
            )

    @overrides
    def _open_member(self, entry: ArchiveEntry) -> IO[bytes]:
        try:
            return self._zip.open(entry.info, "r")
        except _ZIP_ERRORS as err:
            raise OSError(errno.EIO, f"bad zip member: {err}", entry.name) from err

    @overrides
    def close(self) -> None:
        self._zip.close()
