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

"""File attributes and access modes shared by all layer kinds."""

import dataclasses
import enum
import os
import stat
from typing import Optional, Tuple

BASIC = "basic"


@enum.unique
class AccessMode(enum.Enum):
    """Modes that can be verified by an access check."""

    READ = os.R_OK
    WRITE = os.W_OK
    EXECUTE = os.X_OK

    def __repr__(self):
        return f"{self.__class__.__name__}.{self.name}"


@dataclasses.dataclass(frozen=True)
class BasicAttributes:
    """The basic attributes of a file, common to every layer kind.

    Timestamps are POSIX timestamps. Archive members only record a
    modification time, which is also reported as access and creation time.
    """

    size: int
    is_regular_file: bool
    is_directory: bool
    is_symbolic_link: bool
    is_other: bool
    last_modified_time: float
    last_access_time: float
    creation_time: float
    file_key: Optional[Tuple[int, int]] = None

    @classmethod
    def from_stat(cls, stat_result: os.stat_result) -> "BasicAttributes":
        """Create basic attributes from the result of a stat call.

        :param stat_result: The stat result of a file in a directory layer.

        :returns: The basic attributes of the file.
        """
        mode = stat_result.st_mode
        is_regular_file = stat.S_ISREG(mode)
        is_directory = stat.S_ISDIR(mode)
        is_symbolic_link = stat.S_ISLNK(mode)

        return cls(
            size=stat_result.st_size,
            is_regular_file=is_regular_file,
            is_directory=is_directory,
            is_symbolic_link=is_symbolic_link,
            is_other=not (is_regular_file or is_directory or is_symbolic_link),
            last_modified_time=stat_result.st_mtime,
            last_access_time=stat_result.st_atime,
            creation_time=getattr(stat_result, "st_birthtime", stat_result.st_ctime),
            file_key=(stat_result.st_dev, stat_result.st_ino),
        )
