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

"""Flatten the layers of a saved docker image into a single archive."""

from .errors import FlattenError, InvalidManifest, IOFailure, MultiImageManifest
from .layers import (
    ExclusionSet,
    LayerStore,
    MemoryLayerStore,
    TempFileLayerStore,
    UnknownLayer,
    compute_exclusions,
)
from .manifest import decode_layer_order
from .repacker import RepackStats, repack


try:
    from ._version import __version__
except ImportError:  # pragma: no cover
    from importlib.metadata import version, PackageNotFoundError

    try:
        __version__ = version("docker-flatten")
    except PackageNotFoundError:
        __version__ = "dev"


__all__ = [
    "__version__",
    "FlattenError",
    "InvalidManifest",
    "IOFailure",
    "MultiImageManifest",
    "UnknownLayer",
    "ExclusionSet",
    "LayerStore",
    "MemoryLayerStore",
    "TempFileLayerStore",
    "compute_exclusions",
    "decode_layer_order",
    "RepackStats",
    "repack",
]
