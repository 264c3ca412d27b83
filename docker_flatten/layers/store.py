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

"""Layer storage.

The image archive can only be read once, from start to end, but each layer
has to be scanned twice: once to collect its whiteouts and once to copy its
entries to the flattened archive. Layer stores keep the nested layer archives
in seekable buffers until the flattening operation ends.
"""

import abc
import dataclasses
import io
import logging
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional

from overrides import overrides

from docker_flatten import errors

from .errors import UnknownLayer

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class LayerHandle:
    """A buffered layer.

    :param name: The layer name, as found in the image archive.
    :param size: The size of the buffered layer archive.
    """

    name: str
    size: int


class LayerStore(abc.ABC):
    """The base class for layer stores.

    Stores are context managers; buffered layers are released when the
    context is left, whether an error happened or not.
    """

    def __init__(self) -> None:
        self._layers: Dict[str, BinaryIO] = {}

    def __enter__(self) -> "LayerStore":
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def __contains__(self, name: str) -> bool:
        return name in self._layers

    def __len__(self) -> int:
        return len(self._layers)

    def names(self) -> List[str]:
        """Return the names of the buffered layers, in insertion order."""
        return list(self._layers)

    def put(self, name: str, reader: BinaryIO) -> LayerHandle:
        """Consume the reader contents into a new layer buffer.

        If a layer with the same name is already stored, it is replaced.

        :param name: The layer name.
        :param reader: The stream containing the layer archive.

        :returns: The handle of the buffered layer.

        :raises IOFailure: If the layer could not be buffered.
        """
        buffer = self._new_buffer(name)
        try:
            shutil.copyfileobj(reader, buffer)
            size = buffer.tell()
        except OSError as err:
            buffer.close()
            raise errors.IOFailure(f"cannot buffer layer {name!r}: {err}") from err
        except Exception:
            buffer.close()
            raise

        previous = self._layers.pop(name, None)
        if previous:
            logger.debug("replace buffered layer %s", name)
            previous.close()

        self._layers[name] = buffer
        logger.debug("buffered layer %s (%d bytes)", name, size)
        return LayerHandle(name=name, size=size)

    def get(self, name: str) -> BinaryIO:
        """Obtain the stream of a buffered layer, positioned at its start.

        :param name: The layer name.

        :returns: The seekable layer stream.

        :raises UnknownLayer: If no layer with the given name was stored.
        :raises IOFailure: If the stream could not be rewound.
        """
        buffer = self._layers.get(name)
        if buffer is None:
            raise UnknownLayer(name)

        try:
            buffer.seek(0)
        except OSError as err:
            raise errors.IOFailure(f"cannot rewind layer {name!r}: {err}") from err

        return buffer

    def close(self) -> None:
        """Release the storage of all buffered layers."""
        for name, buffer in self._layers.items():
            logger.debug("release layer %s", name)
            buffer.close()
        self._layers.clear()

    @abc.abstractmethod
    def _new_buffer(self, name: str) -> BinaryIO:
        """Allocate an empty seekable buffer for the named layer."""


class TempFileLayerStore(LayerStore):
    """Keep layers in anonymous temporary files.

    :param tmp_dir: The directory to create temporary files in. If not
        specified, the default temporary directory is used.
    """

    def __init__(self, tmp_dir: Optional[Path] = None) -> None:
        super().__init__()
        self._tmp_dir = tmp_dir

    @overrides
    def _new_buffer(self, name: str) -> BinaryIO:
        try:
            return tempfile.TemporaryFile(  # pylint: disable=consider-using-with
                prefix="docker-flatten-", dir=self._tmp_dir
            )
        except OSError as err:
            raise errors.IOFailure(
                f"cannot create temporary file for layer {name!r}: {err}"
            ) from err


class MemoryLayerStore(LayerStore):
    """Keep layers in memory."""

    @overrides
    def _new_buffer(self, name: str) -> BinaryIO:
        return io.BytesIO()
