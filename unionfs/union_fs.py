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

"""Read-only union filesystem.

The namespace of a union filesystem is the merge of an ordered stack of
layers. Single-valued lookups (existence, attributes, access checks and
file contents) are served by the highest priority layer containing the
path. Directory listings aggregate the entries of every layer containing
the directory, without duplicates.
"""

import errno
import logging
import os
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from pathlib import Path
from typing import (
    IO,
    TYPE_CHECKING,
    Any,
    Dict,
    FrozenSet,
    List,
    NoReturn,
    Optional,
    Tuple,
    Union,
)

from unionfs import errors, layers
from unionfs.attributes import BASIC, AccessMode, BasicAttributes
from unionfs.layers import Layer, LayerStack, LocalPath
from unionfs.paths import ROOT, UnionPath

if TYPE_CHECKING:
    from unionfs.config import LayerStackConfig
    from unionfs.provider import UnionFileSystemProvider

logger = logging.getLogger(__name__)

PathType = Union[UnionPath, str]
EntryFilter = Callable[[LocalPath], bool]


class DirectoryListing:
    """A snapshot of the merged entries of a directory.

    The listing owns no external resource: closing it has no effect, and
    it doesn't reflect changes made to the layers after it was created.

    :param entries: The merged directory entries.
    """

    def __init__(self, entries: Iterable[UnionPath]):
        self._entries = tuple(entries)

    def __iter__(self) -> Iterator[UnionPath]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __enter__(self) -> "DirectoryListing":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the listing."""


class UnionFileSystem:
    """A read-only filesystem merging a stack of directories and archives.

    Locations are given lowest priority first: a file present in several
    locations is served from the one listed last. Locations that are not
    directories are mounted as archives when the filesystem is created and
    stay mounted for its whole lifetime. Union filesystems cannot be
    closed.

    :param locations: The backing directories and archive files.
    :param archive_types: Explicit archive types for some locations.
    :param provider: The provider that created this filesystem, if any.

    :raises LayerMountError: If a location can't be mounted.
    """

    separator = "/"

    def __init__(
        self,
        locations: Sequence[Union[str, "os.PathLike[str]"]],
        *,
        archive_types: Optional[Mapping[Path, str]] = None,
        provider: Optional["UnionFileSystemProvider"] = None,
    ):
        self._stack = LayerStack.build(locations, archive_types=archive_types)
        self._provider = provider
        self._root = UnionPath(self, ROOT)

    def __repr__(self) -> str:
        locations = [str(location) for location in self._stack.locations]
        return f"UnionFileSystem({locations!r})"

    @classmethod
    def from_config(
        cls, config: "LayerStackConfig", *, base_dir: Optional[Path] = None
    ) -> "UnionFileSystem":
        """Create a union filesystem from a layer stack definition.

        :param config: The layer stack definition.
        :param base_dir: The directory relative layer paths are based on.
        """
        return cls(
            config.locations(base_dir),
            archive_types=config.archive_types(base_dir),
        )

    @property
    def provider(self) -> Optional["UnionFileSystemProvider"]:
        """Return the provider that created this filesystem."""
        return self._provider

    @property
    def layers(self) -> LayerStack:
        """Return the layers in priority order."""
        return self._stack

    @property
    def root(self) -> UnionPath:
        """Return the root of the unified namespace."""
        return self._root

    @property
    def root_directories(self) -> List[UnionPath]:
        """Return the root directories of the filesystem."""
        return [self._root]

    @property
    def file_stores(self) -> List[Any]:
        """Union filesystems expose no file stores."""
        return []

    @property
    def supported_attribute_views(self) -> FrozenSet[str]:
        """Return the names of the supported attribute kinds."""
        return frozenset({BASIC})

    @property
    def is_open(self) -> bool:
        """Union filesystems are always open."""
        return True

    @property
    def is_read_only(self) -> bool:
        """Union filesystems are always read-only."""
        return True

    def close(self) -> NoReturn:
        """Refuse to close the filesystem.

        Mounted archives are owned by the filesystem for its whole lifetime.

        :raises UnsupportedOperationError: Always.
        """
        raise errors.UnsupportedOperationError("close")

    def priority_ordered_locations(self) -> Tuple[Path, ...]:
        """Return the backing locations, highest priority first."""
        return self._stack.locations

    def get_path(self, first: str, *more: str) -> UnionPath:
        """Create a unified path from one or more path segments."""
        return UnionPath(self, self.separator.join((first, *more)))

    def get_path_matcher(self, syntax_and_pattern: str) -> NoReturn:
        """Path pattern matching is not supported."""
        raise errors.UnsupportedOperationError("get_path_matcher")

    def get_user_principal_lookup_service(self) -> NoReturn:
        """User principal lookup is not supported."""
        raise errors.UnsupportedOperationError("get_user_principal_lookup_service")

    def new_watch_service(self) -> NoReturn:
        """Change notification is not supported."""
        raise errors.UnsupportedOperationError("new_watch_service")

    def create_directory(self, path: PathType) -> NoReturn:
        """Union filesystems are read-only."""
        raise errors.UnsupportedOperationError("create_directory")

    def delete(self, path: PathType) -> NoReturn:
        """Union filesystems are read-only."""
        raise errors.UnsupportedOperationError("delete")

    def move(self, source: PathType, target: Any) -> NoReturn:
        """Union filesystems are read-only."""
        raise errors.UnsupportedOperationError("move")

    def copy(self, source: PathType, target: Any) -> NoReturn:
        """Union filesystems are read-only."""
        raise errors.UnsupportedOperationError("copy")

    def open_for_write(self, path: PathType) -> NoReturn:
        """Union filesystems are read-only."""
        raise errors.UnsupportedOperationError("open_for_write")

    def _as_union_path(self, path: PathType) -> UnionPath:
        if isinstance(path, UnionPath):
            if path.filesystem is not self:
                raise ValueError(f"path {str(path)!r} belongs to another filesystem")
            return path

        return UnionPath(self, path)

    def _candidates(self, path: UnionPath) -> Iterator[Tuple[Layer, LocalPath]]:
        for layer in self._stack:
            yield layer, layers.translate(layer, path)

    def _find_first(self, path: UnionPath) -> Optional[Tuple[Layer, LocalPath]]:
        """Return the highest priority layer containing the path."""
        match = next(
            (
                (layer, local)
                for layer, local in self._candidates(path)
                if layers.exists(layer, local)
            ),
            None,
        )

        if match:
            logger.debug("%s resolved in layer %s", path, match[0].location)
        else:
            logger.debug("%s not found in any layer", path)

        return match

    def _find_first_or_raise(self, path: UnionPath) -> Tuple[Layer, LocalPath]:
        match = self._find_first(path)
        if not match:
            raise FileNotFoundError(
                errno.ENOENT, "No such file or directory", str(path)
            )
        return match

    def find_layer(self, path: PathType) -> Optional[Layer]:
        """Return the layer serving the given path.

        :param path: The unified path.

        :returns: The highest priority layer containing the path, or None
            if the path doesn't exist in any layer.
        """
        match = self._find_first(self._as_union_path(path))
        return match[0] if match else None

    def exists(self, path: PathType) -> bool:
        """Whether the given path exists in any layer."""
        return self._find_first(self._as_union_path(path)) is not None

    def is_dir(self, path: PathType) -> bool:
        """Whether the effective file at the given path is a directory."""
        try:
            return self.read_attributes(path).is_directory
        except FileNotFoundError:
            return False

    def is_file(self, path: PathType) -> bool:
        """Whether the effective file at the given path is a regular file."""
        try:
            return self.read_attributes(path).is_regular_file
        except FileNotFoundError:
            return False

    def read_attributes(self, path: PathType, kind: str = BASIC) -> BasicAttributes:
        """Read the attributes of a file.

        Attributes are read from the highest priority layer containing the
        path; they are never merged across layers.

        :param path: The unified path.
        :param kind: The attribute kind. Only basic attributes are supported.

        :returns: The basic attributes of the effective file.

        :raises UnsupportedOperationError: If the attribute kind is not basic.
        :raises FileNotFoundError: If the path doesn't exist in any layer.
        """
        if kind != BASIC:
            raise errors.UnsupportedOperationError(f"read_attributes({kind!r})")

        union_path = self._as_union_path(path)
        layer, local = self._find_first_or_raise(union_path)

        try:
            return layers.read_attributes(layer, local)
        except OSError as err:
            raise FileNotFoundError(
                errno.ENOENT, "Missing path", str(union_path)
            ) from err

    def check_access(self, path: PathType, *modes: AccessMode) -> None:
        """Verify the access modes of a file.

        The check is delegated to the highest priority layer containing
        the path.

        :param path: The unified path.
        :param modes: The access modes to verify. If none is given, only
            existence is verified.

        :raises FileNotFoundError: If the path doesn't exist in any layer.
        :raises PermissionError: If the layer denies access.
        """
        layer, local = self._find_first_or_raise(self._as_union_path(path))
        layers.check_access(layer, local, modes)

    def open_for_read(self, path: PathType) -> IO[bytes]:
        """Open a file for reading.

        :param path: The unified path.

        :returns: A binary, seekable stream on the file in the highest
            priority layer containing it.

        :raises FileNotFoundError: If the path doesn't exist in any layer.
        :raises OSError: If the file can't be opened.
        """
        layer, local = self._find_first_or_raise(self._as_union_path(path))
        return layers.open_for_read(layer, local)

    def list_directory(
        self, path: PathType, entry_filter: Optional[EntryFilter] = None
    ) -> DirectoryListing:
        """List the merged entries of a directory.

        Every layer containing the directory contributes its entries. Entries
        of higher priority layers come first; an entry already listed by a
        higher priority layer is not listed again.

        :param path: The unified path of the directory.
        :param entry_filter: A predicate selecting layer-local entries.

        :returns: The merged listing, empty if the directory doesn't exist
            in any layer.
        """
        union_path = self._as_union_path(path)
        entries: Dict[UnionPath, None] = {}

        for layer, local in self._candidates(union_path):
            if not layers.exists(layer, local):
                continue

            for entry in layers.iterdir(layer, local):
                if entry_filter and not entry_filter(entry):
                    continue

                name = layers.to_unified_string(layer, entry)
                if union_path.is_absolute() and not name.startswith(ROOT):
                    name = ROOT + name
                entries.setdefault(UnionPath(self, name), None)

        logger.debug("list %s: %d entries", union_path, len(entries))
        return DirectoryListing(entries)
