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

"""Layer stack definition models.

A layer stack file lists the backing locations of a union filesystem,
lowest priority first::

    layers:
      - path: base
      - path: mods/extra.jar
        archive-type: zip

Relative layer paths are relative to the directory containing the file.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pydantic
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from unionfs import archives, errors


class LayerSpec(BaseModel):
    """LayerSpec defines a single backing location."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=lambda s: s.replace("_", "-"),
    )

    path: str = Field(min_length=1)
    archive_type: Optional[str] = None

    @field_validator("archive_type")
    @classmethod
    def validate_archive_type(cls, value: Optional[str]) -> Optional[str]:
        """Make sure the archive type has a registered handler."""
        if value is not None:
            try:
                archives.get_archive_handler_class(value)
            except errors.ArchiveTypeError:
                raise ValueError(f"unknown archive type {value!r}") from None
        return value

    def location(self, base_dir: Optional[Path] = None) -> Path:
        """Return the backing location, resolving relative paths."""
        path = Path(self.path).expanduser()
        if base_dir and not path.is_absolute():
            return base_dir / path
        return path


class LayerStackConfig(BaseModel):
    """LayerStackConfig defines the backing locations of a union filesystem."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        populate_by_name=True,
    )

    layers: List[LayerSpec] = Field(min_length=1)

    @classmethod
    def unmarshal(cls, data: Dict[str, Any]) -> "LayerStackConfig":
        """Create and populate a new ``LayerStackConfig`` from dictionary data.

        :param data: The dictionary data to unmarshal.

        :return: The newly created object.

        :raise TypeError: If data is not a dictionary.
        :raise LayerStackSpecificationError: If the data is not valid.
        """
        if not isinstance(data, dict):
            raise TypeError("layer stack data is not a dictionary")

        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as err:
            raise errors.LayerStackSpecificationError.from_validation_error(
                err.errors()
            ) from err

    def marshal(self) -> Dict[str, Any]:
        """Create a dictionary containing the layer stack data.

        :return: The newly created dictionary.
        """
        return self.model_dump(by_alias=True, exclude_none=True)

    def locations(self, base_dir: Optional[Path] = None) -> List[Path]:
        """Return the backing locations, lowest priority first."""
        return [layer.location(base_dir) for layer in self.layers]

    def archive_types(self, base_dir: Optional[Path] = None) -> Dict[Path, str]:
        """Return the explicit archive types, keyed by backing location."""
        return {
            layer.location(base_dir): layer.archive_type
            for layer in self.layers
            if layer.archive_type
        }


def load_stack_file(filename: Union[str, Path]) -> LayerStackConfig:
    """Read and validate a layer stack file.

    :param filename: The YAML file to read.

    :return: The validated layer stack definition.

    :raise LayerStackSpecificationError: If the file contents are not valid.
    """
    with open(filename) as stack_file:
        data = yaml.safe_load(stack_file)

    return LayerStackConfig.unmarshal(data)
