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

"""Read-only union filesystem over directories and archives."""

from .attributes import AccessMode, BasicAttributes
from .config import LayerSpec, LayerStackConfig, load_stack_file
from .errors import UnionFSError, UnsupportedOperationError
from .layers import Layer, LayerKind, LayerStack
from .paths import UnionPath
from .provider import UnionFileSystemProvider
from .union_fs import DirectoryListing, UnionFileSystem


try:
    from ._version import __version__
except ImportError:  # pragma: no cover
    from importlib.metadata import version, PackageNotFoundError

    try:
        __version__ = version("unionfs")
    except PackageNotFoundError:
        __version__ = "dev"


__all__ = [
    "__version__",
    "AccessMode",
    "BasicAttributes",
    "DirectoryListing",
    "Layer",
    "LayerKind",
    "LayerSpec",
    "LayerStack",
    "LayerStackConfig",
    "UnionFSError",
    "UnionFileSystem",
    "UnionFileSystemProvider",
    "UnionPath",
    "UnsupportedOperationError",
    "load_stack_file",
]
