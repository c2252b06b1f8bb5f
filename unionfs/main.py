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

"""Union filesystem command line tool.

This is the main entry point for the unionfs package, invoked when
running `python -munionfs`. It builds a union filesystem from a list of
layers (or a layer stack file) and inspects the merged namespace.
"""

import argparse
import datetime
import errno
import logging
import shutil
import sys
from pathlib import Path

import unionfs
import unionfs.errors
from unionfs import UnionFileSystem, config


def main():
    """Run the command-line interface."""
    options = _parse_arguments()

    if options.version:
        print(f"unionfs {unionfs.__version__}")
        sys.exit()

    if options.trace:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO

    logging.basicConfig(level=log_level)

    try:
        _run_command(options)
    except OSError as err:
        msg = err.strerror or str(err)
        if err.filename:
            msg = f"{err.filename}: {msg}"
        print(f"Error: {msg}.", file=sys.stderr)
        sys.exit(1)
    except unionfs.errors.LayerStackSpecificationError as err:
        print(f"Error: invalid layer stack: {err}", file=sys.stderr)
        sys.exit(2)
    except unionfs.errors.UnionFSError as err:
        print(f"Error: {err}", file=sys.stderr)
        sys.exit(3)
    except (ValueError, TypeError) as err:
        print(f"Error: {err}", file=sys.stderr)
        sys.exit(4)


def _build_filesystem(options: argparse.Namespace) -> UnionFileSystem:
    if options.file:
        stack_file = Path(options.file)
        stack = config.load_stack_file(stack_file)
        return UnionFileSystem.from_config(stack, base_dir=stack_file.parent)

    if not options.layers:
        raise ValueError("no layers specified")

    return UnionFileSystem(options.layers)


def _run_command(options: argparse.Namespace) -> None:
    filesystem = _build_filesystem(options)
    path = filesystem.get_path(options.path)

    if options.command == "layers":
        for index, layer in enumerate(filesystem.layers):
            print(f"{index}\t{layer.kind.value}\t{layer.location}")
    elif options.command == "ls":
        with filesystem.list_directory(path) as listing:
            for entry in listing:
                suffix = "/" if entry.is_dir() else ""
                print(f"{entry.name}{suffix}")
    elif options.command == "cat":
        with filesystem.open_for_read(path) as stream:
            shutil.copyfileobj(stream, sys.stdout.buffer)
        sys.stdout.flush()
    elif options.command == "stat":
        _print_attributes(filesystem, options.path)
    elif options.command == "which":
        layer = filesystem.find_layer(path)
        if not layer:
            raise FileNotFoundError(
                errno.ENOENT, "No such file or directory", str(path)
            )
        print(layer.location)


def _print_attributes(filesystem: UnionFileSystem, path: str) -> None:
    attrs = filesystem.read_attributes(path)
    if attrs.is_directory:
        file_type = "directory"
    elif attrs.is_symbolic_link:
        file_type = "symbolic link"
    elif attrs.is_regular_file:
        file_type = "regular file"
    else:
        file_type = "other"

    mtime = datetime.datetime.fromtimestamp(attrs.last_modified_time)
    print(f"Path: {path}")
    print(f"Type: {file_type}")
    print(f"Size: {attrs.size}")
    print(f"Modified: {mtime.isoformat(sep=' ', timespec='seconds')}")
    print(f"Layer: {filesystem.find_layer(path).location}")  # type: ignore[union-attr]


def _parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Inspect a read-only union filesystem"
    )
    parser.add_argument(
        "-f",
        "--file",
        metavar="filename",
        help="Read the layer stack from the given YAML file",
    )
    parser.add_argument(
        "-l",
        "--layer",
        dest="layers",
        action="append",
        metavar="path",
        default=[],
        help="Add a directory or archive layer; later layers override earlier ones",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=["ls", "cat", "stat", "which", "layers"],
        default="ls",
        help="The operation to perform (default: ls)",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default="/",
        help="The path in the union filesystem (default: /)",
    )
    parser.add_argument(
        "--version", action="store_true", help="Display the unionfs version and exit"
    )
    parser.add_argument("--trace", action="store_true", help=argparse.SUPPRESS)

    return parser.parse_args()
