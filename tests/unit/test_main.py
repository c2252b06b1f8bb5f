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

import sys
import textwrap

import pytest
import unionfs
from unionfs import main


@pytest.fixture
def stack(layer_tree, layer_zip):
    base = layer_tree("base", {"dir/a.txt": b"base a", "dir/b.txt": b"base b"})
    upper = layer_zip("upper.zip", {"dir/a.txt": b"upper a", "dir/c.txt": b"c"})
    return base, upper


def run(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["unionfs", *args])
    main.main()


def test_version(monkeypatch, capsys):
    with pytest.raises(SystemExit) as raised:
        run(monkeypatch, "--version")
    assert raised.value.code is None
    assert capsys.readouterr().out == f"unionfs {unionfs.__version__}\n"


def test_layers(monkeypatch, capsys, stack):
    base, upper = stack
    run(monkeypatch, "-l", str(base), "-l", str(upper), "layers")

    assert capsys.readouterr().out == (
        f"0\tmounted-archive\t{upper}\n1\tdirectory\t{base}\n"
    )


def test_ls(monkeypatch, capsys, stack):
    base, upper = stack
    run(monkeypatch, "-l", str(base), "-l", str(upper), "ls", "/dir")

    lines = capsys.readouterr().out.splitlines()
    assert lines[:2] == ["a.txt", "c.txt"]
    assert sorted(lines) == ["a.txt", "b.txt", "c.txt"]


def test_ls_root_default(monkeypatch, capsys, stack):
    base, upper = stack
    run(monkeypatch, "-l", str(base), "-l", str(upper))

    assert capsys.readouterr().out == "dir/\n"


def test_cat(monkeypatch, capsysbinary, stack):
    base, upper = stack
    run(monkeypatch, "-l", str(base), "-l", str(upper), "cat", "/dir/a.txt")

    assert capsysbinary.readouterr().out == b"upper a"


def test_stat(monkeypatch, capsys, stack):
    base, upper = stack
    run(monkeypatch, "-l", str(base), "-l", str(upper), "stat", "/dir/b.txt")

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "Path: /dir/b.txt"
    assert lines[1] == "Type: regular file"
    assert lines[2] == "Size: 6"
    assert lines[3].startswith("Modified: ")
    assert lines[4] == f"Layer: {base}"


def test_which(monkeypatch, capsys, stack):
    base, upper = stack
    run(monkeypatch, "-l", str(base), "-l", str(upper), "which", "/dir/a.txt")

    assert capsys.readouterr().out == f"{upper}\n"


def test_stack_file(monkeypatch, capsys, new_path, stack):
    stack_file = new_path / "stack.yaml"
    stack_file.write_text(
        textwrap.dedent(
            """\
            layers:
              - path: base
              - path: upper.zip
            """
        )
    )
    monkeypatch.chdir("/")

    run(monkeypatch, "-f", str(stack_file), "cat", "/dir/b.txt")

    assert capsys.readouterr().out == "base b"


@pytest.mark.parametrize(
    ("args", "code", "message"),
    [
        (("which", "/missing"), 1, "Error: /missing: No such file or directory.\n"),
        (("cat", "/missing"), 1, "Error: /missing: No such file or directory.\n"),
        (("ls",), 4, "Error: no layers specified\n"),
    ],
)
def test_errors(monkeypatch, capsys, stack, args, code, message):
    base, upper = stack
    if args != ("ls",):
        args = ("-l", str(base), "-l", str(upper), *args)

    with pytest.raises(SystemExit) as raised:
        run(monkeypatch, *args)
    assert raised.value.code == code
    assert capsys.readouterr().err == message


def test_mount_error(monkeypatch, capsys, new_path):
    bogus = new_path / "bogus.dat"
    bogus.write_text("not an archive")

    with pytest.raises(SystemExit) as raised:
        run(monkeypatch, "-l", str(bogus))
    assert raised.value.code == 3
    assert capsys.readouterr().err.startswith(f"Error: Failed to mount layer {bogus}")


def test_invalid_stack_file(monkeypatch, capsys, new_path):
    stack_file = new_path / "stack.yaml"
    stack_file.write_text("layers: []\n")

    with pytest.raises(SystemExit) as raised:
        run(monkeypatch, "-f", str(stack_file))
    assert raised.value.code == 2
    assert capsys.readouterr().err.startswith("Error: invalid layer stack: ")
