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

import io
import os
import tarfile
import zipfile
from pathlib import Path
from typing import Dict, Optional

import pytest

non_root_only = pytest.mark.skipif(
    hasattr(os, "geteuid") and os.geteuid() == 0,
    reason="root ignores file permissions",
)

# Archive member contents; None marks a directory.
Members = Dict[str, Optional[bytes]]


def make_tree(root: Path, members: Members) -> Path:
    """Create a directory layer with the given members."""
    root.mkdir(parents=True, exist_ok=True)
    for name, content in members.items():
        path = root / name
        if content is None:
            path.mkdir(parents=True, exist_ok=True)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
    return root


def make_zip(path: Path, members: Members, *, mode: int = 0o644) -> Path:
    """Create a zip archive with the given members."""
    with zipfile.ZipFile(path, "w") as zip_file:
        for name, content in members.items():
            if content is None:
                info = zipfile.ZipInfo(name.rstrip("/") + "/")
                info.external_attr = (0o40755 << 16) | 0x10
                zip_file.writestr(info, b"")
            else:
                info = zipfile.ZipInfo(name)
                info.external_attr = (0o100000 | mode) << 16
                zip_file.writestr(info, content)
    return path


def make_tar(path: Path, members: Members, *, mode: int = 0o644) -> Path:
    """Create a (possibly compressed) tarball with the given members."""
    if path.name.endswith((".tar.gz", ".tgz")):
        write_mode = "w:gz"
    elif path.name.endswith(".tar.xz"):
        write_mode = "w:xz"
    elif path.name.endswith(".tar.bz2"):
        write_mode = "w:bz2"
    else:
        write_mode = "w"

    with tarfile.open(path, write_mode) as tar_file:
        for name, content in members.items():
            info = tarfile.TarInfo(name)
            info.mtime = 1700000000
            if content is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar_file.addfile(info)
            else:
                info.size = len(content)
                info.mode = mode
                tar_file.addfile(info, io.BytesIO(content))
    return path
