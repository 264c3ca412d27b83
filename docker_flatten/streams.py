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

"""Input and output stream selection."""

import contextlib
import gzip
import logging
import sys
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

logger = logging.getLogger(__name__)

STDIO_NAME = "-"


def is_stdio(path: Optional[Union[str, Path]]) -> bool:
    """Verify if the given path designates the standard input or output."""
    return path is None or str(path) == STDIO_NAME


@contextlib.contextmanager
def open_input(path: Optional[Union[str, Path]] = None) -> Iterator[BinaryIO]:
    """Open the image archive for reading.

    :param path: The file to read from. Standard input is used if the path
        is not specified or is ``-``.
    """
    if is_stdio(path):
        yield sys.stdin.buffer
        return

    logger.debug("read image from %s", path)
    with open(path, "rb") as input_file:  # type: ignore[arg-type]
        yield input_file


@contextlib.contextmanager
def open_output(
    path: Optional[Union[str, Path]] = None, *, compress: bool = False
) -> Iterator[BinaryIO]:
    """Open the flattened archive destination for writing.

    Standard output is flushed but never closed. If compression is enabled,
    the gzip stream is closed before the file it writes to.

    :param path: The file to write to. Standard output is used if the path
        is not specified or is ``-``.
    :param compress: Whether to compress the output with gzip.
    """
    with contextlib.ExitStack() as stack:
        sink: BinaryIO
        if is_stdio(path):
            sink = sys.stdout.buffer
            stack.callback(sink.flush)
        else:
            logger.debug("write flattened archive to %s", path)
            sink = stack.enter_context(open(path, "wb"))  # type: ignore[arg-type]

        if compress:
            sink = stack.enter_context(
                gzip.GzipFile(filename="", mode="wb", fileobj=sink)
            )

        yield sink
