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

"""Repack a saved image into a single flattened filesystem archive."""

import dataclasses
import logging
import tarfile
from typing import IO, BinaryIO, List, Optional

from docker_flatten import errors, manifest
from docker_flatten.layers import shadows, whiteouts
from docker_flatten.layers.shadows import ExclusionSet
from docker_flatten.layers.store import LayerStore, TempFileLayerStore

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"
LAYER_SUFFIX = "/layer.tar"

# position of the magic field in a tar header block
_MAGIC_OFFSET = 257


@dataclasses.dataclass
class RepackStats:
    """Counters collected while replaying layers.

    :param layers: The number of layers replayed.
    :param written: The number of entries written to the output archive.
    :param skipped: The number of entries left out.
    """

    layers: int = 0
    written: int = 0
    skipped: int = 0


def repack(
    source: BinaryIO, sink: BinaryIO, *, store: Optional[LayerStore] = None
) -> RepackStats:
    """Merge the layers of a saved image into a single archive.

    The input is read once, buffering each layer archive in the layer store.
    Once the manifest and all layers were read, layers are replayed in
    manifest order, leaving out the entries hidden by upper layers.

    :param source: The stream containing the ``docker save`` archive.
    :param sink: The stream to write the flattened archive to.
    :param store: The store used to buffer layers. A temporary file store
        is used if not specified. The store is closed on return.

    :returns: Counters of the replayed layers and entries.

    :raises MultiImageManifest: If the input contains more than one image.
    :raises InvalidManifest: If the manifest cannot be decoded.
    :raises UnknownLayer: If the manifest references a missing layer.
    :raises IOFailure: If reading, writing or buffering failed.
    """
    if store is None:
        store = TempFileLayerStore()

    with store:
        order = _buffer_layers(source, store)
        exclusions = shadows.compute_exclusions(store, order)
        return _replay_layers(sink, store, order, exclusions)


def _buffer_layers(source: BinaryIO, store: LayerStore) -> List[str]:
    """Read the image archive, buffering layers and decoding the manifest.

    :returns: The layer order defined in the manifest.
    """
    order: Optional[List[str]] = None

    try:
        with tarfile.open(fileobj=source, mode="r|*") as archive:
            for member in archive:
                if member.name.endswith(LAYER_SUFFIX):
                    reader = _open_member(archive, member)
                    if reader is None:
                        logger.warning("ignore non-regular layer entry %s", member.name)
                        continue
                    store.put(member.name, reader)
                elif member.name == MANIFEST_NAME:
                    reader = _open_member(archive, member)
                    if reader is None:
                        raise errors.InvalidManifest(
                            f"{MANIFEST_NAME} is not a regular file."
                        )
                    order = manifest.decode_layer_order(reader)
                else:
                    logger.debug("skip image entry %s", member.name)
    except (OSError, tarfile.TarError) as err:
        raise errors.IOFailure(f"cannot read image archive: {err}") from err

    if order is None:
        logger.warning("no %s in input, the output archive is empty", MANIFEST_NAME)
        return []

    return order


def _open_member(
    archive: tarfile.TarFile, member: tarfile.TarInfo
) -> Optional[IO[bytes]]:
    """Open the contents of a regular file member."""
    if not member.isreg():
        return None

    return archive.extractfile(member)


def _replay_layers(
    sink: BinaryIO,
    store: LayerStore,
    order: List[str],
    exclusions: List[ExclusionSet],
) -> RepackStats:
    """Write the visible entries of each layer to the output archive.

    Exclusion sets are matched to layers by their position in the layer
    order. The archive end-of-file marker is only written if all layers
    were replayed.
    """
    stats = RepackStats()

    try:
        with tarfile.open(fileobj=sink, mode="w|") as output:
            for name, exclusion in zip(order, exclusions):
                stream = store.get(name)
                logger.info("replay layer %s", name)
                _copy_layer(output, name, stream, exclusion, stats)
                stats.layers += 1
    except (OSError, tarfile.TarError) as err:
        raise errors.IOFailure(f"cannot write output archive: {err}") from err

    return stats


def _copy_layer(
    output: tarfile.TarFile,
    name: str,
    stream: BinaryIO,
    exclusion: ExclusionSet,
    stats: RepackStats,
) -> None:
    """Copy the entries of a layer not hidden by upper layers.

    Entry headers are copied unchanged, in the format they were read in,
    and whiteout entries are dropped.
    """
    try:
        with tarfile.open(fileobj=stream, mode="r:") as layer:
            for member in layer:
                if exclusion.excludes(member.name):
                    logger.debug("skip shadowed entry %s in %s", member.name, name)
                    stats.skipped += 1
                    continue

                if whiteouts.is_whiteout(member.name):
                    logger.debug("skip whiteout %s in %s", member.name, name)
                    stats.skipped += 1
                    continue

                output.format = _header_format(stream, member)
                content = layer.extractfile(member) if member.isreg() else None
                output.addfile(member, content)
                stats.written += 1
    except (OSError, tarfile.TarError) as err:
        raise errors.IOFailure(f"cannot replay layer {name!r}: {err}") from err


def _header_format(stream: BinaryIO, member: tarfile.TarInfo) -> int:
    """Find the format of the header a layer member was read from.

    GNU headers are written back as GNU headers. Anything else is written
    in the pax format, which only adds extended records when the member
    needs them, so plain ustar headers are kept as they are.
    """
    stream.seek(member.offset + _MAGIC_OFFSET)
    if stream.read(len(tarfile.GNU_MAGIC)) == tarfile.GNU_MAGIC:
        return tarfile.GNU_FORMAT

    return tarfile.PAX_FORMAT
