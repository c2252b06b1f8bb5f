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

from typing import TYPE_CHECKING, List

import pytest
from unionfs import errors

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails


def test_unionfs_error_brief():
    err = errors.UnionFSError(brief="A brief description.")
    assert str(err) == "A brief description."
    assert (
        repr(err)
        == "UnionFSError(brief='A brief description.', details=None, resolution=None)"
    )
    assert err.brief == "A brief description."
    assert err.details is None
    assert err.resolution is None


def test_unionfs_error_full():
    err = errors.UnionFSError(brief="Brief", details="Details", resolution="Resolution")
    assert str(err) == "Brief\nDetails\nResolution"
    assert (
        repr(err)
        == "UnionFSError(brief='Brief', details='Details', resolution='Resolution')"
    )


def test_unsupported_operation():
    err = errors.UnsupportedOperationError("close")
    assert err.operation == "close"
    assert err.brief == "Operation 'close' is not supported by the union filesystem."
    assert err.details == "Union filesystems are read-only and cannot be closed."
    assert err.resolution is None


def test_layer_mount_error():
    err = errors.LayerMountError("/srv/layer.dat", message="bad zip file")
    assert err.location == "/srv/layer.dat"
    assert err.message == "bad zip file"
    assert err.brief == "Failed to mount layer /srv/layer.dat: bad zip file"
    assert err.details is None
    assert err.resolution == (
        "Make sure the layer is a directory or a supported archive."
    )


def test_archive_type_error():
    err = errors.ArchiveTypeError("cpio")
    assert err.archive_type == "cpio"
    assert err.brief == "Archive type 'cpio' is not supported."
    assert err.details is None
    assert err.resolution == "Make sure the archive type is correct."


def test_layer_stack_specification_error():
    err = errors.LayerStackSpecificationError("something is wrong")
    assert err.message == "something is wrong"
    assert err.brief == "Layer stack validation failed."
    assert err.details == "something is wrong"
    assert err.resolution == (
        "Review the layer stack definition and make sure it's correct."
    )


def test_layer_stack_specification_error_from_validation_error():
    error_list: List["ErrorDetails"] = [
        {"loc": ("layers",), "msg": "Field required", "type": "missing", "input": {}},
        {
            "loc": ("layers", 2, "mode"),
            "msg": "Extra inputs are not permitted",
            "type": "extra_forbidden",
            "input": "rw",
        },
        {
            "loc": ("layers", 0, "path"),
            "msg": "String should have at least 1 character",
            "type": "string_too_short",
            "input": "",
        },
        {"loc": (), "msg": "ignored", "type": "value_error", "input": None},
    ]

    err = errors.LayerStackSpecificationError.from_validation_error(error_list)
    assert err.details == (
        "- field 'layers' is required\n"
        "- extra field 'layers[2].mode' not permitted\n"
        "- String should have at least 1 character in field 'layers[0].path'"
    )


def test_format_loc_unhandled():
    with pytest.raises(RuntimeError, match="unhandled loc: 1.5"):
        errors.LayerStackSpecificationError._format_loc(("layers", 1.5))


def test_filesystem_already_exists():
    err = errors.FileSystemAlreadyExists("app")
    assert err.key == "app"
    assert err.brief == "A union filesystem named 'app' already exists."
    assert err.resolution == "Use a different name or reuse the existing filesystem."


def test_filesystem_not_found():
    err = errors.FileSystemNotFound("app")
    assert err.key == "app"
    assert err.brief == "No union filesystem named 'app' is registered."
    assert err.details is None
    assert err.resolution is None
