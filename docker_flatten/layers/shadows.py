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

"""Resolve the entries shadowed by upper layers.

When layers are stacked, an entry in a lower layer is hidden if an upper
layer defines the same path, or deletes it (or one of its parent
directories) with a whiteout entry. The exclusion sets computed here list,
for each layer, the paths that must not be copied when the layer is
replayed into the flattened archive.
"""

import logging
import tarfile
from typing import BinaryIO, Iterator, List, Sequence, Set

from docker_flatten import errors

from . import whiteouts
from .store import LayerStore

logger = logging.getLogger(__name__)


class ExclusionSet:
    """The entries hidden by upper layers.

    Paths hide the entry with that exact name. Subtree roots also hide
    every entry below them: a whiteout can delete a whole directory, and a
    file can replace one.
    """

    def __init__(self) -> None:
        self.paths: Set[str] = set()
        self.subtrees: Set[str] = set()

    def __contains__(self, path: str) -> bool:
        return path in self.paths

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths)

    def __len__(self) -> int:
        return len(self.paths)

    def __repr__(self) -> str:
        return (
            f"ExclusionSet(paths={sorted(self.paths)!r}, "
            f"subtrees={sorted(self.subtrees)!r})"
        )

    def add(self, path: str, *, subtree: bool = True) -> None:
        """Hide a path.

        :param path: The path to hide.
        :param subtree: Whether the entries below the path are hidden too.
        """
        self.paths.add(path)
        if subtree:
            self.subtrees.add(path)

    def update(self, other: "ExclusionSet") -> None:
        """Hide all paths hidden by another exclusion set."""
        self.paths |= other.paths
        self.subtrees |= other.subtrees

    def excludes(self, name: str) -> bool:
        """Verify if an entry is hidden by an upper layer.

        :param name: The archive member name.

        :returns: Whether the name is hidden, or lies below a hidden subtree.
        """
        if name in self.paths:
            return True

        index = name.find("/")
        while index != -1:
            if name[:index] in self.subtrees:
                return True
            index = name.find("/", index + 1)

        return False


def compute_exclusions(
    store: LayerStore, order: Sequence[str]
) -> List[ExclusionSet]:
    """Compute the exclusion set of each layer in the stack.

    Layers are scanned from the top of the stack down to the layer right
    above the bottom one. The paths defined or deleted by a layer are added
    to the exclusion sets of all layers below it.

    :param store: The store containing the buffered layers.
    :param order: The layer names, from bottom to top.

    :returns: The exclusion sets, one for each position in the layer order.
        A layer listed more than once gets one set for each occurrence.

    :raises UnknownLayer: If a layer in the order is not in the store.
    :raises IOFailure: If a layer archive could not be read.
    """
    exclusions = [ExclusionSet() for _ in order]

    for index in range(len(order) - 1, 0, -1):
        name = order[index]
        shadowed = _shadowed_entries(name, store.get(name))
        logger.debug("layer %s shadows %d paths", name, len(shadowed))
        if not shadowed:
            continue

        for lower in exclusions[:index]:
            lower.update(shadowed)

    return exclusions


def _shadowed_entries(name: str, stream: BinaryIO) -> ExclusionSet:
    """Collect the entries a layer hides from the layers below it.

    Whiteout entries hide their sibling path and its subtree. Any other
    entry hides the entry with the same name, since tar can store a path
    more than once and only the last copy must survive. A directory entry
    doesn't hide the lower contents of the directory. Opaque directory
    markers are whiteouts of the ``.wh..opq`` sibling, which matches no
    lower entry.

    :param name: The layer name.
    :param stream: The layer archive stream.

    :returns: The entries shadowed by the layer.
    """
    shadowed = ExclusionSet()

    try:
        with tarfile.open(fileobj=stream, mode="r|") as layer:
            for member in layer:
                if whiteouts.is_whiteout(member.name):
                    target = whiteouts.whited_out_path(member.name)
                    if target is not None:
                        shadowed.add(target)
                        continue

                shadowed.add(member.name, subtree=not member.isdir())
    except (OSError, tarfile.TarError) as err:
        raise errors.IOFailure(f"cannot read layer {name!r}: {err}") from err

    return shadowed
