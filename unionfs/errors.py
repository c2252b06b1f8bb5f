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

"""Union filesystem errors."""

import dataclasses
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails


@dataclasses.dataclass(repr=True)
class UnionFSError(Exception):
    """Unexpected error.

    :param brief: Brief description of error.
    :param details: Detailed information.
    :param resolution: Recommendation, if any.
    """

    brief: str
    details: Optional[str] = None
    resolution: Optional[str] = None

    def __str__(self) -> str:
        components = [self.brief]

        if self.details:
            components.append(self.details)

        if self.resolution:
            components.append(self.resolution)

        return "\n".join(components)


class UnsupportedOperationError(UnionFSError):
    """An operation was requested that a read-only union filesystem never provides.

    :param operation: The name of the unsupported operation.
    """

    def __init__(self, operation: str):
        self.operation = operation
        brief = f"Operation {operation!r} is not supported by the union filesystem."
        details = "Union filesystems are read-only and cannot be closed."

        super().__init__(brief=brief, details=details)


class LayerMountError(UnionFSError):
    """A backing location could not be mounted as a layer.

    :param location: The backing location.
    :param message: The error message.
    """

    def __init__(self, location: str, message: str):
        self.location = location
        self.message = message
        brief = f"Failed to mount layer {location}: {message}"
        resolution = "Make sure the layer is a directory or a supported archive."

        super().__init__(brief=brief, resolution=resolution)


class ArchiveTypeError(UnionFSError):
    """The requested archive type has no registered handler.

    :param archive_type: The unknown archive type.
    """

    def __init__(self, archive_type: str):
        self.archive_type = archive_type
        brief = f"Archive type {archive_type!r} is not supported."
        resolution = "Make sure the archive type is correct."

        super().__init__(brief=brief, resolution=resolution)


class LayerStackSpecificationError(UnionFSError):
    """A layer stack file was not correctly specified.

    :param message: The error message.
    """

    def __init__(self, message: str):
        self.message = message
        brief = "Layer stack validation failed."
        details = message
        resolution = "Review the layer stack definition and make sure it's correct."

        super().__init__(brief=brief, details=details, resolution=resolution)

    @classmethod
    def from_validation_error(cls, error_list: List["ErrorDetails"]):
        """Create a LayerStackSpecificationError from a pydantic error list.

        :param error_list: A list of pydantic error definitions.
        """
        formatted_errors: List[str] = []

        for error in error_list:
            loc = error.get("loc")
            msg = error.get("msg")

            if not (loc and msg) or not isinstance(loc, tuple):
                continue

            field = cls._format_loc(loc)
            if error.get("type") == "missing":
                formatted_errors.append(f"- field {field!r} is required")
            elif error.get("type") == "extra_forbidden":
                formatted_errors.append(f"- extra field {field!r} not permitted")
            else:
                formatted_errors.append(f"- {msg} in field {field!r}")

        return cls(message="\n".join(formatted_errors))

    @classmethod
    def _format_loc(cls, loc):
        """Format location."""
        loc_parts = []
        for loc_part in loc:
            if isinstance(loc_part, str):
                loc_parts.append(loc_part)
            elif isinstance(loc_part, int):
                # Integer indicates an index. Go back and fix up previous part.
                previous_part = loc_parts.pop()
                previous_part += f"[{loc_part}]"
                loc_parts.append(previous_part)
            else:
                raise RuntimeError(f"unhandled loc: {loc_part}")

        return ".".join(loc_parts)


class FileSystemAlreadyExists(UnionFSError):
    """A union filesystem with the given key is already registered.

    :param key: The filesystem key.
    """

    def __init__(self, key: str):
        self.key = key
        brief = f"A union filesystem named {key!r} already exists."
        resolution = "Use a different name or reuse the existing filesystem."

        super().__init__(brief=brief, resolution=resolution)


class FileSystemNotFound(UnionFSError):
    """No union filesystem is registered under the given key.

    :param key: The filesystem key.
    """

    def __init__(self, key: str):
        self.key = key
        brief = f"No union filesystem named {key!r} is registered."

        super().__init__(brief=brief)
