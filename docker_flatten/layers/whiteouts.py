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

"""Whiteout entry helpers.

Layer archive members are matched by their raw names, so these helpers
work on POSIX path strings instead of filesystem paths.

Relevant OCI documentation available at:
https://github.com/opencontainers/image-spec/blob/main/layer.md
"""

import posixpath
from typing import Optional

WHITEOUT_PREFIX = ".wh."


def is_whiteout(name: str) -> bool:
    """Verify if the given archive member name is a whiteout entry.

    Opaque directory markers and the bare prefix name are whiteout entries
    too: they are never copied to the flattened archive.

    :param name: The archive member name to verify.

    :returns: Whether the base name carries the whiteout prefix.
    """
    return posixpath.basename(name).startswith(WHITEOUT_PREFIX)


def whited_out_path(name: str) -> Optional[str]:
    """Find the path deleted by a whiteout entry.

    :param name: The whiteout entry name.

    :returns: The sibling path with the whiteout prefix stripped, or None
        if the entry is the bare prefix name.
    """
    base = posixpath.basename(name)
    if not base.startswith(WHITEOUT_PREFIX):
        raise ValueError("argument is not a whiteout entry")

    if base == WHITEOUT_PREFIX:
        return None

    return posixpath.join(posixpath.dirname(name), base[len(WHITEOUT_PREFIX) :])
