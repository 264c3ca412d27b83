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

"""Docker image flattening command line tool.

This is the main entry point for the docker_flatten package, installed
as ``docker-flatten``. It reads the archive created by ``docker save`` for
a single image and writes a tar archive with the merged contents of all
image layers::

    docker save image:tag | docker-flatten > image-fs.tar
"""

import argparse
import contextlib
import logging
import os
import sys
from pathlib import Path

import docker_flatten
from docker_flatten import errors, streams
from docker_flatten.layers import LayerStore, MemoryLayerStore, TempFileLayerStore
from docker_flatten.repacker import repack

logger = logging.getLogger(__name__)


def main():
    """Run the command-line interface."""
    options = _parse_arguments()

    if options.version:
        print(f"docker-flatten {docker_flatten.__version__}")
        sys.exit()

    if options.trace:
        log_level = logging.DEBUG
    else:
        log_level = logging.WARNING

    logging.basicConfig(level=log_level)

    try:
        _flatten(options)
    except OSError as err:
        msg = err.strerror or str(err)
        if err.filename:
            msg = f"{err.filename}: {msg}"
        print(f"Error: {msg}.", file=sys.stderr)
        sys.exit(1)
    except errors.IOFailure as err:
        print(f"Error: {err}", file=sys.stderr)
        sys.exit(1)
    except (errors.MultiImageManifest, errors.InvalidManifest) as err:
        print(f"Error: invalid image manifest: {err}", file=sys.stderr)
        sys.exit(2)
    except errors.FlattenError as err:
        print(f"Error: {err}", file=sys.stderr)
        sys.exit(3)


def _flatten(options: argparse.Namespace) -> None:
    store: LayerStore
    if options.in_memory:
        store = MemoryLayerStore()
    else:
        store = TempFileLayerStore(tmp_dir=options.tmp_dir)

    with streams.open_input(options.input) as source:
        try:
            with streams.open_output(options.output, compress=options.gzip) as sink:
                stats = repack(source, sink, store=store)
        except Exception:
            # a partially written archive is not usable
            if not streams.is_stdio(options.output):
                with contextlib.suppress(OSError):
                    os.unlink(options.output)
            raise

    logger.info(
        "wrote %d entries from %d layers (%d skipped)",
        stats.written,
        stats.layers,
        stats.skipped,
    )


def _parse_arguments() -> argparse.Namespace:
    prog = "docker-flatten"
    description = (
        "Merge the layers of an image saved with 'docker save' into a single "
        "filesystem archive."
    )

    parser = argparse.ArgumentParser(prog=prog, description=description, add_help=False)
    parser.add_argument(
        "-h",
        "--help",
        action="help",
        default=argparse.SUPPRESS,
        help="Show this help message and exit.",
    )
    parser.add_argument(
        "-i",
        "--input",
        metavar="filename",
        help="Read the image archive from a file instead of standard input.",
    )
    parser.add_argument(
        "-o",
        "--output",
        metavar="filename",
        help="Write the flattened archive to a file instead of standard output.",
    )
    parser.add_argument(
        "--gzip",
        action="store_true",
        help="Compress the output with gzip.",
    )
    parser.add_argument(
        "--tmp-dir",
        metavar="dirname",
        type=Path,
        help="Create temporary layer files in the specified directory.",
    )
    parser.add_argument(
        "--in-memory",
        action="store_true",
        help="Keep layers in memory instead of temporary files.",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable debug messages.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Display the docker-flatten version and exit.",
    )

    return parser.parse_args()
