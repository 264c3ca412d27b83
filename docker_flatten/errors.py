# -*- Mode:Python; indent-tabs-mode:nil; tab-width:4 -*-
#
# Copyright 2026 Canonical Ltd.
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

"""Docker flatten errors."""

import dataclasses
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails


@dataclasses.dataclass(repr=True)
class FlattenError(Exception):
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


class IOFailure(FlattenError):
    """Failed to read the input, write the output or use temporary storage.

    :param message: The error message.
    """

    def __init__(self, message: str):
        self.message = message
        brief = f"I/O error: {message}"

        super().__init__(brief=brief)


class MultiImageManifest(FlattenError):
    """The image manifest doesn't describe exactly one image.

    :param count: The number of images described in the manifest.
    """

    def __init__(self, count: int):
        self.count = count
        brief = f"manifest.json describes {count} images, expected exactly one."
        resolution = "Call docker save for a single image."

        super().__init__(brief=brief, resolution=resolution)


class InvalidManifest(FlattenError):
    """The image manifest could not be decoded.

    :param message: The error message.
    """

    def __init__(self, message: str):
        self.message = message
        brief = "Failed to decode manifest.json."
        details = message
        resolution = "Make sure the input was created by docker save."

        super().__init__(brief=brief, details=details, resolution=resolution)

    @classmethod
    def from_validation_error(cls, error_list: List["ErrorDetails"]):
        """Create an InvalidManifest from a pydantic error list.

        :param error_list: A list of dictionaries containing pydantic error definitions.
        """
        formatted_errors: List[str] = []

        for error in error_list:
            loc = error.get("loc")
            msg = error.get("msg")

            if not msg:
                continue

            if loc:
                field = ".".join(str(loc_part) for loc_part in loc)
                formatted_errors.append(f"- {msg} in field {field!r}")
            else:
                formatted_errors.append(f"- {msg}")

        return cls("\n".join(formatted_errors))
