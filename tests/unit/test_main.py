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

import gzip
import io
import sys
import types
from pathlib import Path

import pytest
from docker_flatten import main

from tests.unit.archives import directory, file, image, layer, names

_LAYER_A = layer(directory("etc"), file("etc/x", b"x"), file("etc/y", b"y"))
_LAYER_B = layer(directory("etc"), file("etc/.wh.x"), file("etc/y", b"new"))


@pytest.fixture
def image_file(new_dir):
    path = Path("image.tar")
    path.write_bytes(image({"a/layer.tar": _LAYER_A, "b/layer.tar": _LAYER_B}))
    return path


def _run(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["docker-flatten", *args])
    main.main()


def _exit_code(monkeypatch, *args) -> int:
    with pytest.raises(SystemExit) as raised:
        _run(monkeypatch, *args)
    return raised.value.code


class TestFlatten:
    """Flatten images from the command line."""

    def test_file(self, monkeypatch, image_file):
        _run(monkeypatch, "-i", "image.tar", "-o", "out.tar")

        assert names(Path("out.tar").read_bytes()) == ["etc", "etc/y"]

    def test_gzip(self, monkeypatch, image_file):
        _run(monkeypatch, "-i", "image.tar", "-o", "out.tar.gz", "--gzip")

        data = gzip.decompress(Path("out.tar.gz").read_bytes())
        assert names(data) == ["etc", "etc/y"]

    def test_in_memory(self, mocker, monkeypatch, image_file):
        spy = mocker.spy(main, "MemoryLayerStore")

        _run(monkeypatch, "-i", "image.tar", "-o", "out.tar", "--in-memory")

        assert spy.call_count == 1
        assert names(Path("out.tar").read_bytes()) == ["etc", "etc/y"]

    def test_tmp_dir(self, mocker, monkeypatch, image_file):
        Path("tmp").mkdir()
        spy = mocker.spy(main, "TempFileLayerStore")

        _run(monkeypatch, "-i", "image.tar", "-o", "out.tar", "--tmp-dir", "tmp")

        spy.assert_called_once_with(tmp_dir=Path("tmp"))
        assert names(Path("out.tar").read_bytes()) == ["etc", "etc/y"]

    def test_standard_streams(self, monkeypatch, image_file):
        stdin = types.SimpleNamespace(buffer=io.BytesIO(image_file.read_bytes()))
        stdout = types.SimpleNamespace(buffer=io.BytesIO())
        monkeypatch.setattr(sys, "stdin", stdin)
        monkeypatch.setattr(sys, "stdout", stdout)

        _run(monkeypatch)

        assert names(stdout.buffer.getvalue()) == ["etc", "etc/y"]

    def test_version(self, monkeypatch, capsys):
        assert _exit_code(monkeypatch, "--version") is None

        out, _ = capsys.readouterr()
        assert out.startswith("docker-flatten ")


class TestErrors:
    """Report errors with the matching exit code."""

    def test_missing_input(self, monkeypatch, capsys, new_dir):
        assert _exit_code(monkeypatch, "-i", "missing.tar", "-o", "out.tar") == 1

        _, err = capsys.readouterr()
        assert err == "Error: missing.tar: No such file or directory.\n"
        assert not Path("out.tar").exists()

    def test_missing_input_keeps_output(self, monkeypatch, new_dir):
        Path("out.tar").write_bytes(b"previous")

        assert _exit_code(monkeypatch, "-i", "missing.tar", "-o", "out.tar") == 1
        assert Path("out.tar").read_bytes() == b"previous"

    def test_corrupt_input(self, monkeypatch, capsys, new_dir):
        Path("image.tar").write_bytes(b"not an archive" * 100)

        assert _exit_code(monkeypatch, "-i", "image.tar", "-o", "out.tar") == 1

        _, err = capsys.readouterr()
        assert err.startswith("Error: I/O error: cannot read image archive: ")
        assert not Path("out.tar").exists()

    def test_missing_tmp_dir(self, monkeypatch, capsys, image_file):
        code = _exit_code(
            monkeypatch, "-i", "image.tar", "-o", "out.tar", "--tmp-dir", "missing"
        )
        assert code == 1

        _, err = capsys.readouterr()
        assert err.startswith("Error: I/O error: cannot create temporary file ")
        assert not Path("out.tar").exists()

    @pytest.mark.parametrize("count", [0, 2])
    def test_multi_image_manifest(self, monkeypatch, capsys, new_dir, count):
        descriptor = {"Config": "0123.json", "Layers": ["a/layer.tar"]}
        data = image({"a/layer.tar": _LAYER_A}, manifest=[descriptor] * count)
        Path("image.tar").write_bytes(data)

        assert _exit_code(monkeypatch, "-i", "image.tar", "-o", "out.tar") == 2

        _, err = capsys.readouterr()
        assert err == (
            f"Error: invalid image manifest: manifest.json describes {count} "
            "images, expected exactly one.\n"
            "Call docker save for a single image.\n"
        )
        assert not Path("out.tar").exists()

    def test_invalid_manifest(self, monkeypatch, capsys, new_dir):
        data = image({"a/layer.tar": _LAYER_A}, manifest={"Layers": []})
        Path("image.tar").write_bytes(data)

        assert _exit_code(monkeypatch, "-i", "image.tar", "-o", "out.tar") == 2

        _, err = capsys.readouterr()
        assert err.startswith(
            "Error: invalid image manifest: Failed to decode manifest.json.\n"
        )

    def test_unknown_layer(self, monkeypatch, capsys, new_dir):
        data = image({"a/layer.tar": _LAYER_A}, order=["a/layer.tar", "b/layer.tar"])
        Path("image.tar").write_bytes(data)

        assert _exit_code(monkeypatch, "-i", "image.tar", "-o", "out.tar") == 3

        _, err = capsys.readouterr()
        assert err == (
            "Error: manifest references unknown layer 'b/layer.tar'.\n"
            "Make sure the input archive is complete.\n"
        )
        assert not Path("out.tar").exists()
