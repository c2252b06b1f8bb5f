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

"""Named union filesystems and ``union:`` URIs."""

import logging
import os
import threading
import urllib.parse
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Dict, List, Optional, Union

from unionfs import errors
from unionfs.paths import ROOT, UnionPath
from unionfs.union_fs import UnionFileSystem

logger = logging.getLogger(__name__)


class UnionFileSystemProvider:
    """Create and look up union filesystems by name.

    Filesystems are addressed by URIs of the form ``union://<name>/<path>``.
    Registered filesystems can't be closed, so they are never removed.
    """

    scheme = "union"

    def __init__(self) -> None:
        self._filesystems: Dict[str, UnionFileSystem] = {}
        self._lock = threading.Lock()

    def new_file_system(
        self,
        key: str,
        locations: Sequence[Union[str, "os.PathLike[str]"]],
        *,
        archive_types: Optional[Mapping[Path, str]] = None,
    ) -> UnionFileSystem:
        """Create and register a new union filesystem.

        :param key: The filesystem name.
        :param locations: The backing locations, lowest priority first.
        :param archive_types: Explicit archive types for some locations.

        :raises FileSystemAlreadyExists: If the name is already registered.
        :raises LayerMountError: If a location can't be mounted.
        """
        with self._lock:
            if key in self._filesystems:
                raise errors.FileSystemAlreadyExists(key)

            filesystem = UnionFileSystem(
                locations, archive_types=archive_types, provider=self
            )
            self._filesystems[key] = filesystem

        logger.debug("registered union filesystem %r", key)
        return filesystem

    def get_file_system(self, key: str) -> UnionFileSystem:
        """Return a registered union filesystem.

        :raises FileSystemNotFound: If the name is not registered.
        """
        with self._lock:
            try:
                return self._filesystems[key]
            except KeyError:
                raise errors.FileSystemNotFound(key) from None

    def file_system_names(self) -> List[str]:
        """Return the names of the registered filesystems."""
        with self._lock:
            return list(self._filesystems)

    def get_path(self, uri: str) -> UnionPath:
        """Convert a ``union:`` URI to a path in a registered filesystem.

        :param uri: The URI, as in ``union://name/dir/file.txt``.

        :raises ValueError: If the URI scheme is not ``union``.
        :raises FileSystemNotFound: If the filesystem is not registered.
        """
        parsed = urllib.parse.urlsplit(uri)
        if parsed.scheme != self.scheme:
            raise ValueError(f"URI scheme is not {self.scheme!r}: {uri!r}")

        filesystem = self.get_file_system(urllib.parse.unquote(parsed.netloc))
        path = urllib.parse.unquote(parsed.path) or ROOT
        return filesystem.get_path(path)
