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

"""Archive files mounted as read-only filesystems."""

from .archives import (
    get_archive_handler_class,
    get_archive_type,
    mount,
    register,
    unregister,
)
from .base import ArchiveEntry, ArchiveFilesystem, ArchivePath
from .tar_archive import TarArchiveFilesystem
from .zip_archive import ZipArchiveFilesystem

__all__ = [
    "ArchiveEntry",
    "ArchiveFilesystem",
    "ArchivePath",
    "TarArchiveFilesystem",
    "ZipArchiveFilesystem",
    "get_archive_handler_class",
    "get_archive_type",
    "mount",
    "register",
    "unregister",
]
