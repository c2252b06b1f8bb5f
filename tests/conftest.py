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

from pathlib import Path

import pytest

from tests import make_tar, make_tree, make_zip


@pytest.fixture
def new_path(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def layer_tree(new_path):
    """Create a directory layer in the current directory."""

    def create_layer_tree(name: str, members) -> Path:
        return make_tree(new_path / name, members)

    return create_layer_tree


@pytest.fixture
def layer_zip(new_path):
    """Create a zip archive layer in the current directory."""

    def create_layer_zip(name: str, members, **kwargs) -> Path:
        return make_zip(new_path / name, members, **kwargs)

    return create_layer_zip


@pytest.fixture
def layer_tar(new_path):
    """Create a tarball layer in the current directory."""

    def create_layer_tar(name: str, members, **kwargs) -> Path:
        return make_tar(new_path / name, members, **kwargs)

    return create_layer_tar
