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

"""Layer management and helpers.

A layer is either a directory on the host filesystem or an archive file
mounted as its own filesystem. Layer operations take a layer-local path,
obtained by translating a unified path with :func:`translate`.
"""

import dataclasses
import enum
import errno
import functools
import logging
import operator
import os
import posixpath
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from typing import IO, TYPE_CHECKING, Dict, List, Optional, Tuple, TypeVar, Union

from unionfs import archives, errors
from unionfs.archives import ArchiveFilesystem, ArchivePath
from unionfs.attributes import AccessMode, BasicAttributes

if TYPE_CHECKING:
    from unionfs.paths import UnionPath

logger = logging.getLogger(__name__)

LocalPath = Union[Path, ArchivePath]

T = TypeVar("T")


@enum.unique
class LayerKind(enum.Enum):
    """The kind of backing location of a layer."""

    DIRECTORY = "directory"
    MOUNTED_ARCHIVE = "mounted-archive"

    def __repr__(self):
        return f"{self.__class__.__name__}.{self.name}"


@dataclasses.dataclass(frozen=True)
class Layer:
    """A single backing source of a union filesystem.

    :param location: The backing location, as given by the caller.
    :param kind: Whether the layer is a directory or a mounted archive.
    :param handle: The mounted archive filesystem, for archive layers.
    """

    location: Path
    kind: LayerKind
    handle: Optional[ArchiveFilesystem] = dataclasses.field(
        default=None, compare=False
    )

    def __post_init__(self) -> None:
        if (self.kind == LayerKind.MOUNTED_ARCHIVE) != (self.handle is not None):
            raise ValueError("only mounted archive layers have a filesystem handle")


def reverse(locations: Sequence[T]) -> Tuple[T, ...]:
    """Convert the caller-supplied location order to priority order.

    Locations listed later override the ones listed before them, so the
    last location is searched first.
    """
    return tuple(reversed(locations))


class LayerStack:
    """An immutable sequence of layers in priority order.

    :param layers: The layers, highest priority first.
    """

    def __init__(self, layers: Sequence[Layer]):
        self._layers = tuple(layers)

    def __iter__(self) -> Iterator[Layer]:
        return iter(self._layers)

    def __len__(self) -> int:
        return len(self._layers)

    def __getitem__(self, index: int) -> Layer:
        return self._layers[index]

    @property
    def locations(self) -> Tuple[Path, ...]:
        """Return the backing locations in priority order."""
        return tuple(layer.location for layer in self._layers)

    @classmethod
    def build(
        cls,
        locations: Sequence[Union[str, "os.PathLike[str]"]],
        *,
        archive_types: Optional[Mapping[Path, str]] = None,
    ) -> "LayerStack":
        """Create a layer stack from an ordered list of backing locations.

        Locations that are not directories are mounted as archives. Archives
        are mounted once per location, when the stack is built, and remain
        mounted for the lifetime of the stack.

        :param locations: The backing locations, lowest priority first.
        :param archive_types: Explicit archive types for some locations.

        :returns: The layer stack, highest priority first.

        :raises LayerMountError: If a location can't be mounted.
        """
        if not archive_types:
            archive_types = {}

        mounted: Dict[Path, ArchiveFilesystem] = {}
        layers: List[Layer] = []

        try:
            for location in reverse([Path(loc) for loc in locations]):
                if location in mounted:
                    handle = mounted[location]
                    layer = Layer(location, LayerKind.MOUNTED_ARCHIVE, handle)
                else:
                    archive_type = archive_types.get(location)
                    layer = mount_layer(location, archive_type=archive_type)
                    if layer.handle:
                        mounted[location] = layer.handle
                layers.append(layer)
        except Exception:
            # No stack will own the archives mounted so far.
            for handle in mounted.values():
                handle.close()
            raise

        logger.debug("layer stack: %s", [str(layer.location) for layer in layers])
        return cls(layers)


def mount_layer(location: Path, *, archive_type: Optional[str] = None) -> Layer:
    """Create a layer for a backing location.

    :param location: The directory or archive file.
    :param archive_type: The archive type, if it shouldn't be inferred.

    :returns: The directory or mounted archive layer.

    :raises LayerMountError: If the location is not a directory and can't
        be mounted as an archive.
    """
    if not archive_type and location.is_dir():
        return Layer(location, LayerKind.DIRECTORY)

    try:
        handle = archives.mount(location, archive_type=archive_type)
    except OSError as err:
        message = err.strerror or str(err)
        raise errors.LayerMountError(str(location), message=message) from err

    return Layer(location, LayerKind.MOUNTED_ARCHIVE, handle)


def translate(layer: Layer, path: "UnionPath") -> LocalPath:
    """Convert a unified path to a path in the given layer.

    A single leading separator is removed from absolute paths other than the
    root. Directory layers resolve the result relative to their directory,
    archive layers resolve it against the archive root.

    :param layer: The layer to translate the path to.
    :param path: The path in the unified namespace.

    :returns: The layer-local path, which may not exist.
    """
    local = str(path)
    if len(local) > 1 and path.is_absolute():
        local = local[1:]

    if layer.kind == LayerKind.MOUNTED_ARCHIVE:
        return layer.handle.get_path(local)  # type: ignore[union-attr]

    # Keep the path inside the layer directory, as archive paths are kept
    # inside the archive root.
    return layer.location / posixpath.normpath("/" + local).lstrip("/")


def exists(layer: Layer, local: LocalPath) -> bool:
    """Verify if a layer-local path exists.

    Errors while checking are reported as non-existence.
    """
    if layer.kind == LayerKind.MOUNTED_ARCHIVE:
        return local.exists()

    return os.path.exists(local)


def read_attributes(layer: Layer, local: LocalPath) -> BasicAttributes:
    """Read the basic attributes of a layer-local path."""
    if layer.kind == LayerKind.MOUNTED_ARCHIVE:
        return local.stat()  # type: ignore[return-value]

    return BasicAttributes.from_stat(os.stat(local))


def check_access(
    layer: Layer, local: LocalPath, modes: Sequence[AccessMode]
) -> None:
    """Verify the access modes of a layer-local path.

    :raises FileNotFoundError: If the path doesn't exist.
    :raises PermissionError: If access is denied.
    """
    if layer.kind == LayerKind.MOUNTED_ARCHIVE:
        layer.handle.check_access(local, *modes)  # type: ignore[union-attr,arg-type]
        return

    os.stat(local)
    mask = functools.reduce(operator.or_, (mode.value for mode in modes), os.F_OK)
    if not os.access(local, mask):
        raise PermissionError(errno.EACCES, "Permission denied", str(local))


def open_for_read(layer: Layer, local: LocalPath) -> IO[bytes]:
    """Open a layer-local file for reading only."""
    if layer.kind == LayerKind.MOUNTED_ARCHIVE:
        return local.open()  # type: ignore[return-value]

    return open(local, "rb")  # noqa: SIM115


def iterdir(layer: Layer, local: LocalPath) -> Iterator[LocalPath]:
    """Iterate over the entries of a layer-local directory."""
    if layer.kind == LayerKind.MOUNTED_ARCHIVE:
        return layer.handle.iterdir(local)  # type: ignore[union-attr,arg-type]

    return Path(local).iterdir()


def to_unified_string(layer: Layer, entry: LocalPath) -> str:
    """Convert a layer-local directory entry to unified path form.

    Archive paths are already expressed relative to the archive root.
    Directory entries are made relative to the layer directory.
    """
    if layer.kind == LayerKind.MOUNTED_ARCHIVE:
        return str(entry)

    return str(Path(entry).relative_to(layer.location))
