"""Tests for gltf-transform Draco codec wrapper."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from mobile_glb.errors import CodecError, CodecUnavailableError
from mobile_glb.utils.constants import DracoOptions
from mobile_glb.utils.gltf_transform import (
    DracoCodec,
    build_draco_args,
    find_gltf_transform,
)


class TestFindGltfTransform:
    """Tests for find_gltf_transform function."""

    @patch("mobile_glb.utils.gltf_transform.shutil.which")
    def test_finds_executable_in_path(self, mock_which: MagicMock) -> None:
        """Should find gltf-transform executable in PATH."""
        mock_which.return_value = "/usr/local/bin/gltf-transform"

        result = find_gltf_transform()

        assert result == "/usr/local/bin/gltf-transform"
        mock_which.assert_called_once_with("gltf-transform")

    @patch("mobile_glb.utils.gltf_transform.shutil.which")
    def test_returns_none_when_not_found(self, mock_which: MagicMock) -> None:
        mock_which.return_value = None

        assert find_gltf_transform() is None


class TestBuildDracoArgs:
    """Tests for build_draco_args function."""

    def test_default_quantization(self) -> None:
        args = build_draco_args(DracoOptions())

        assert args == [
            "--method",
            "edgebreaker",
            "--quantize-position",
            "14",
            "--quantize-normal",
            "10",
            "--quantize-texcoord",
            "12",
            "--quantize-color",
            "8",
            "--quantize-generic",
            "12",
        ]

    def test_custom_values_are_passed_through(self) -> None:
        args = build_draco_args(DracoOptions(method="sequential", quantize_position=11))

        assert args[:2] == ["--method", "sequential"]
        assert args[args.index("--quantize-position") + 1] == "11"


class TestDracoCodecAcquire:
    """Tests for DracoCodec.acquire."""

    @patch("mobile_glb.utils.gltf_transform.shutil.which")
    def test_acquires_resolved_executable(self, mock_which: MagicMock) -> None:
        mock_which.return_value = "/opt/bin/gltf-transform"

        codec = DracoCodec.acquire()

        assert codec.executable == "/opt/bin/gltf-transform"

    @patch("mobile_glb.utils.gltf_transform.shutil.which")
    def test_raises_when_missing(self, mock_which: MagicMock) -> None:
        """Missing executable should be reported with an install hint."""
        mock_which.return_value = None

        with pytest.raises(CodecUnavailableError, match="npm install"):
            DracoCodec.acquire()


class TestDracoCodecEncode:
    """Tests for DracoCodec.encode."""

    @patch("mobile_glb.utils.gltf_transform.subprocess.run")
    def test_successful_encode(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """Should run the draco command with quantization flags."""
        input_path = tmp_path / "input.glb"
        output_path = tmp_path / "output.glb"
        input_path.write_bytes(b"test")

        def create_output(*args: object, **kwargs: object) -> MagicMock:
            output_path.write_bytes(b"compressed")
            return MagicMock(returncode=0, stdout="", stderr="")

        mock_run.side_effect = create_output

        DracoCodec("/usr/bin/gltf-transform").encode(
            input_path, output_path, DracoOptions()
        )

        cmd = mock_run.call_args[0][0]
        assert cmd[:4] == [
            "/usr/bin/gltf-transform",
            "draco",
            str(input_path),
            str(output_path),
        ]
        assert "--quantize-position" in cmd
        assert mock_run.call_args[1]["capture_output"] is True

    @patch("mobile_glb.utils.gltf_transform.subprocess.run")
    def test_nonzero_exit_raises_with_stderr(
        self, mock_run: MagicMock, tmp_path: Path
    ) -> None:
        mock_run.return_value = MagicMock(
            returncode=1, stdout="", stderr="Error: invalid input\n"
        )

        with pytest.raises(CodecError, match="draco failed: Error: invalid input"):
            DracoCodec("gltf-transform").encode(
                tmp_path / "in.glb", tmp_path / "out.glb", DracoOptions()
            )

    @patch("mobile_glb.utils.gltf_transform.subprocess.run")
    def test_nonzero_exit_without_output(
        self, mock_run: MagicMock, tmp_path: Path
    ) -> None:
        mock_run.return_value = MagicMock(returncode=2, stdout="", stderr="")

        with pytest.raises(CodecError, match="Unknown error"):
            DracoCodec("gltf-transform").encode(
                tmp_path / "in.glb", tmp_path / "out.glb", DracoOptions()
            )

    @patch("mobile_glb.utils.gltf_transform.subprocess.run")
    def test_missing_output_file(self, mock_run: MagicMock, tmp_path: Path) -> None:
        """Should fail when the command succeeds but writes nothing."""
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        with pytest.raises(CodecError, match="output file not found"):
            DracoCodec("gltf-transform").encode(
                tmp_path / "in.glb", tmp_path / "out.glb", DracoOptions()
            )

    @patch("mobile_glb.utils.gltf_transform.subprocess.run")
    def test_unstartable_executable(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.side_effect = FileNotFoundError("no such file")

        with pytest.raises(CodecError, match="could not be started"):
            DracoCodec("/missing/gltf-transform").encode(
                tmp_path / "in.glb", tmp_path / "out.glb", DracoOptions()
            )

    @patch("mobile_glb.utils.gltf_transform.subprocess.run")
    def test_other_subprocess_errors_propagate(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.side_effect = subprocess.SubprocessError("boom")

        with pytest.raises(subprocess.SubprocessError):
            DracoCodec("gltf-transform").encode(
                tmp_path / "in.glb", tmp_path / "out.glb", DracoOptions()
            )
