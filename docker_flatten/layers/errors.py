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

"""Layer error definitions."""

from docker_flatten import errors


class LayerError(errors.FlattenError):
    """Base class for layer handling errors."""


class UnknownLayer(LayerError):
    """The manifest references a layer that is not in the input.

    :param name: The layer name.
    """

    def __init__(self, name: str):
        self.name = name
        brief = f"manifest references unknown layer {name!r}."
        resolution = "Make sure the input archive is complete."

        super().__init__(brief=brief, resolution=resolution)
