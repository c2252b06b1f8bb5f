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

import threading

import pytest
from unionfs import UnionFileSystemProvider, errors


@pytest.fixture
def provider():
    return UnionFileSystemProvider()


@pytest.fixture
def layers(layer_tree, layer_zip):
    return [
        layer_tree("base", {"dir/a.txt": b"base a", "b.txt": b"base b"}),
        layer_zip("upper.zip", {"dir/a.txt": b"upper a"}),
    ]


class TestProvider:
    """Named union filesystems."""

    def test_scheme(self, provider):
        assert provider.scheme == "union"

    def test_new_file_system(self, provider, layers):
        fs = provider.new_file_system("app", layers)

        assert fs.provider is provider
        assert provider.get_file_system("app") is fs
        assert provider.file_system_names() == ["app"]

    def test_new_file_system_archive_types(self, provider, layer_tar):
        location = layer_tar("layer.bin", {"x": b"x"})

        fs = provider.new_file_system(
            "app", [location], archive_types={location: "tar"}
        )
        assert fs.layers[0].handle.archive_type == "tar"

    def test_new_file_system_exists(self, provider, layers):
        provider.new_file_system("app", layers)

        with pytest.raises(errors.FileSystemAlreadyExists) as raised:
            provider.new_file_system("app", layers)
        assert raised.value.key == "app"
        assert str(raised.value) == (
            "A union filesystem named 'app' already exists.\n"
            "Use a different name or reuse the existing filesystem."
        )

    def test_new_file_system_mount_error(self, provider, new_path):
        with pytest.raises(errors.LayerMountError):
            provider.new_file_system("app", [new_path / "missing"])

        assert provider.file_system_names() == []

    def test_get_file_system_not_found(self, provider):
        with pytest.raises(errors.FileSystemNotFound) as raised:
            provider.get_file_system("app")
        assert raised.value.key == "app"

    def test_concurrent_registration(self, provider, layers):
        results = []

        def register():
            try:
                results.append(provider.new_file_system("app", layers))
            except errors.FileSystemAlreadyExists as err:
                results.append(err)

        threads = [threading.Thread(target=register) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        created = [r for r in results if not isinstance(r, Exception)]
        assert len(created) == 1
        assert provider.get_file_system("app") is created[0]


class TestProviderPaths:
    """Paths addressed by ``union:`` URIs."""

    @pytest.fixture
    def fs(self, provider, layers):
        return provider.new_file_system("app", layers)

    def test_get_path(self, provider, fs):
        path = provider.get_path("union://app/dir/a.txt")

        assert path == fs.get_path("/dir/a.txt")
        assert path.read_bytes() == b"upper a"

    def test_get_path_root(self, provider, fs):
        assert provider.get_path("union://app") == fs.root
        assert provider.get_path("union://app/") == fs.root

    def test_get_path_quoted(self, provider, fs):
        assert provider.get_path("union://app/my%20file") == fs.get_path("/my file")

    def test_get_path_wrong_scheme(self, provider, fs):
        with pytest.raises(ValueError, match="^URI scheme is not 'union': "):
            provider.get_path("file:///dir/a.txt")

    def test_get_path_not_found(self, provider, fs):
        with pytest.raises(errors.FileSystemNotFound):
            provider.get_path("union://other/dir/a.txt")
