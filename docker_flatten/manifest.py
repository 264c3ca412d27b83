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

"""Image manifest decoding.

The ``manifest.json`` file written by ``docker save`` holds a list of image
descriptors. Each descriptor names the image configuration file, its tags
and the ordered list of layer archives, from bottom to top.
"""

import logging
from typing import BinaryIO, List, Optional

import pydantic

from docker_flatten import errors

logger = logging.getLogger(__name__)


class ImageManifest(pydantic.BaseModel):
    """The manifest descriptor of a saved image.

    Only the layer list is used; other fields are accepted for reference.
    """

    model_config = pydantic.ConfigDict(extra="ignore", populate_by_name=True)

    config: Optional[str] = pydantic.Field(default=None, alias="Config")
    repo_tags: Optional[List[str]] = pydantic.Field(default=None, alias="RepoTags")
    layers: List[str] = pydantic.Field(default_factory=list, alias="Layers")


_MANIFEST_ADAPTER = pydantic.TypeAdapter(List[ImageManifest])


def decode_layer_order(reader: BinaryIO) -> List[str]:
    """Obtain the ordered list of layers from a manifest file.

    :param reader: The stream containing the manifest file.

    :returns: The layer names, from bottom to top.

    :raises InvalidManifest: If the manifest cannot be decoded.
    :raises MultiImageManifest: If the manifest doesn't describe exactly
        one image.
    """
    try:
        images = _MANIFEST_ADAPTER.validate_json(reader.read())
    except pydantic.ValidationError as err:
        raise errors.InvalidManifest.from_validation_error(err.errors()) from err

    if len(images) != 1:
        raise errors.MultiImageManifest(len(images))

    image = images[0]
    logger.debug(
        "image %s has %d layers", image.repo_tags or "<untagged>", len(image.layers)
    )
    return image.layers
