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

"""Archive handler registry.

A backing location that is not a directory is mounted by an archive
handler. The handler is chosen by, in order of preference:

- the archive type explicitly requested for the layer
- a match of the archive file name against the handler's pattern
- content sniffing, asking each handler whether it can read the file

Built-in handlers are available for zip (and jar) files and for plain and
compressed tarballs. Applications can register additional handlers.
"""

import logging
import re
from pathlib import Path
from typing import Dict, Optional, Type

from unionfs import errors

from .base import ArchiveFilesystem
from .tar_archive import TarArchiveFilesystem
from .zip_archive import ZipArchiveFilesystem

logger = logging.getLogger(__name__)

ArchiveHandlerType = Type[ArchiveFilesystem]

_MANDATORY_HANDLERS: Dict[str, ArchiveHandlerType] = {
    "zip": ZipArchiveFilesystem,
    "tar": TarArchiveFilesystem,
}

_HANDLERS: Dict[str, ArchiveHandlerType] = {}


def register(handler: ArchiveHandlerType, /) -> None:
    """Register an archive handler.

    :param handler: an ArchiveFilesystem class to register.
    :raises: ValueError if the handler overrides a built-in archive type.
    """
    archive_type = handler.archive_type
    if archive_type in _MANDATORY_HANDLERS:
        raise ValueError(
            f"Built-in archive types cannot be overridden: {archive_type!r}"
        )
    _HANDLERS[archive_type] = handler


def unregister(archive_type: str, /) -> None:
    """Unregister an archive handler by type name."""
    if archive_type in _MANDATORY_HANDLERS:
        raise ValueError(
            f"Built-in archive types cannot be unregistered: {archive_type!r}"
        )
    try:
        del _HANDLERS[archive_type]
    except KeyError:
        raise ValueError(f"Archive type not registered: {archive_type!r}") from None


def get_archive_handler_class(archive_type: str) -> ArchiveHandlerType:
    """Return the handler class for the given archive type.

    :param archive_type: The archive type name.

    :raise ArchiveTypeError: If no handler is registered for the type.
    """
    if archive_type in _MANDATORY_HANDLERS:
        return _MANDATORY_HANDLERS[archive_type]
    if archive_type in _HANDLERS:
        return _HANDLERS[archive_type]

    raise errors.ArchiveTypeError(archive_type)


def get_archive_type(location: Path) -> Optional[str]:
    """Return the archive type of the given file.

    :param location: The archive file.

    :returns: The registered archive type able to mount the file, or None
        if no handler recognizes it.
    """
    handlers = (*_MANDATORY_HANDLERS.values(), *_HANDLERS.values())

    for handler in handlers:
        if handler.pattern and re.search(handler.pattern, location.name, re.I):
            return handler.archive_type

    for handler in handlers:
        if handler.is_archive(location):
            logger.debug("%s detected as %s archive", location, handler.archive_type)
            return handler.archive_type

    return None


def mount(location: Path, *, archive_type: Optional[str] = None) -> ArchiveFilesystem:
    """Mount an archive file as a filesystem.

    :param location: The archive file to mount.
    :param archive_type: The archive type to use. If not specified, the
        type will be inferred from the archive file.

    :returns: The mounted archive filesystem.

    :raise ArchiveTypeError: If the archive type is unknown.
    :raise OSError: If the archive can't be read.
    """
    if not archive_type:
        archive_type = get_archive_type(location)
        if not archive_type:
            raise OSError(f"unable to determine archive type of {str(location)!r}")

    handler_class = get_archive_handler_class(archive_type)
    logger.debug("mount %s with %s handler", location, archive_type)

    return handler_class(location)
