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

import pydantic
import pytest
from docker_flatten import errors


def test_flatten_error_brief():
    err = errors.FlattenError(brief="A brief description.")
    assert str(err) == "A brief description."
    assert (
        repr(err)
        == "FlattenError(brief='A brief description.', details=None, resolution=None)"
    )
    assert err.brief == "A brief description."
    assert err.details is None
    assert err.resolution is None


def test_flatten_error_full():
    err = errors.FlattenError(brief="Brief", details="Details", resolution="Resolution")
    assert str(err) == "Brief\nDetails\nResolution"
    assert (
        repr(err)
        == "FlattenError(brief='Brief', details='Details', resolution='Resolution')"
    )
    assert err.brief == "Brief"
    assert err.details == "Details"
    assert err.resolution == "Resolution"


def test_io_failure():
    err = errors.IOFailure("disk full")
    assert err.message == "disk full"
    assert err.brief == "I/O error: disk full"
    assert err.details is None
    assert err.resolution is None


@pytest.mark.parametrize("count", [0, 2])
def test_multi_image_manifest(count):
    err = errors.MultiImageManifest(count)
    assert err.count == count
    assert err.brief == (
        f"manifest.json describes {count} images, expected exactly one."
    )
    assert err.details is None
    assert err.resolution == "Call docker save for a single image."


def test_invalid_manifest():
    err = errors.InvalidManifest("something is wrong")
    assert err.message == "something is wrong"
    assert err.brief == "Failed to decode manifest.json."
    assert err.details == "something is wrong"
    assert err.resolution == "Make sure the input was created by docker save."


def test_invalid_manifest_from_validation_error():
    class Model(pydantic.BaseModel):
        layers: list

    with pytest.raises(pydantic.ValidationError) as raised:
        Model.model_validate({"layers": 1})

    err = errors.InvalidManifest.from_validation_error(raised.value.errors())
    assert err.details == "- Input should be a valid list in field 'layers'"


def test_invalid_manifest_from_validation_error_no_location():
    err = errors.InvalidManifest.from_validation_error(
        [
            {"loc": (), "msg": "Invalid JSON", "type": "json_invalid"},
            {"loc": ("a", 0), "msg": "", "type": "missing"},
        ]  # type: ignore[list-item]
    )
    assert err.details == "- Invalid JSON"
