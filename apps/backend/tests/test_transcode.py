"""Tests for AudioTranscodeRunner."""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from cuetrim.errors import CopyFailure, ImportTimeout, TranscodeFailure
from cuetrim.models.asset import AssetId
from cuetrim.services.ingest import ImportWatcher
from cuetrim.services.transcode import AudioTranscodeRunner, format_seek

ASSET_ID = AssetId.parse("MUS/0012")


def _ingested(path: Path) -> bool:
    return True


def _runner(**kwargs) -> AudioTranscodeRunner:
    watcher = kwargs.pop("watcher", None) or ImportWatcher(poll_interval=0.01, timeout=1.0, probe=_ingested)
    return AudioTranscodeRunner(watcher=watcher, **kwargs)


@pytest.fixture
def dirs(tmp_path: Path) -> dict[str, Path]:
    source = tmp_path / "audio" / "MUS" / "SP0012.wav"
    source.parent.mkdir(parents=True)
    source.write_bytes(b"RIFF....WAVEfmt ")
    return {
        "source": source,
        "temp": tmp_path / "temp",
        "import": tmp_path / "import",
    }


def _fake_ffmpeg(returncode: int = 0, stderr: str = "", write_output: bool = True):
    calls: list[list[str]] = []

    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        if write_output and returncode == 0:
            Path(cmd[-1]).write_bytes(b"RIFF-trimmed")
        return subprocess.CompletedProcess(cmd, returncode, stdout="", stderr=stderr)

    return fake_run, calls


@pytest.mark.parametrize(
    "ms,expected",
    [(500, "0.500"), (1000, "1.000"), (1, "0.001"), (61234, "61.234")],
)
def test_format_seek(ms: int, expected: str) -> None:
    assert format_seek(ms) == expected


class TestRun:
    @pytest.mark.asyncio
    async def test_success(self, dirs: dict[str, Path]) -> None:
        fake_run, calls = _fake_ffmpeg()

        with patch("cuetrim.services.transcode.subprocess.run", side_effect=fake_run):
            result = await _runner().run(dirs["source"], 500, dirs["temp"], dirs["import"], ASSET_ID)

        assert result == dirs["import"] / "MUS0012.wav"
        assert result.read_bytes() == b"RIFF-trimmed"
        # source is never modified
        assert dirs["source"].read_bytes() == b"RIFF....WAVEfmt "
        # intermediates removed
        assert list(dirs["temp"].iterdir()) == []

        cmd = calls[0]
        assert cmd[0] == "ffmpeg"
        assert cmd[cmd.index("-ss") + 1] == "0.500"
        assert cmd[cmd.index("-c") + 1] == "copy"
        assert cmd.index("-ss") < cmd.index("-i")

    @pytest.mark.asyncio
    async def test_custom_ffmpeg_path(self, dirs: dict[str, Path]) -> None:
        fake_run, calls = _fake_ffmpeg()

        with patch("cuetrim.services.transcode.subprocess.run", side_effect=fake_run):
            await _runner(ffmpeg_path="/opt/ffmpeg/bin/ffmpeg").run(
                dirs["source"], 1500, dirs["temp"], dirs["import"], ASSET_ID
            )

        assert calls[0][0] == "/opt/ffmpeg/bin/ffmpeg"

    @pytest.mark.asyncio
    async def test_nonzero_exit(self, dirs: dict[str, Path]) -> None:
        fake_run, _ = _fake_ffmpeg(returncode=1, stderr="Invalid data found when processing input")

        with patch("cuetrim.services.transcode.subprocess.run", side_effect=fake_run):
            with pytest.raises(TranscodeFailure) as exc_info:
                await _runner().run(dirs["source"], 500, dirs["temp"], dirs["import"], ASSET_ID)

        assert exc_info.value.returncode == 1
        assert "Invalid data" in exc_info.value.stderr
        assert list(dirs["temp"].iterdir()) == []
        assert not (dirs["import"] / "MUS0012.wav").exists()

    @pytest.mark.asyncio
    async def test_missing_output(self, dirs: dict[str, Path]) -> None:
        fake_run, _ = _fake_ffmpeg(write_output=False)

        with patch("cuetrim.services.transcode.subprocess.run", side_effect=fake_run):
            with pytest.raises(TranscodeFailure, match="did not produce output"):
                await _runner().run(dirs["source"], 500, dirs["temp"], dirs["import"], ASSET_ID)

    @pytest.mark.asyncio
    async def test_timeout(self, dirs: dict[str, Path]) -> None:
        def fake_run(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

        with patch("cuetrim.services.transcode.subprocess.run", side_effect=fake_run):
            with pytest.raises(TranscodeFailure, match="timed out"):
                await _runner(timeout=5).run(dirs["source"], 500, dirs["temp"], dirs["import"], ASSET_ID)

    @pytest.mark.asyncio
    async def test_ffmpeg_not_installed(self, dirs: dict[str, Path]) -> None:
        runner = _runner(ffmpeg_path=str(dirs["temp"] / "no-such-ffmpeg"))

        with pytest.raises(TranscodeFailure, match="not found"):
            await runner.run(dirs["source"], 500, dirs["temp"], dirs["import"], ASSET_ID)

    @pytest.mark.asyncio
    async def test_missing_source(self, dirs: dict[str, Path]) -> None:
        with pytest.raises(CopyFailure):
            await _runner().run(dirs["source"].with_name("SP9999.wav"), 500, dirs["temp"], dirs["import"], ASSET_ID)

    @pytest.mark.asyncio
    async def test_move_failure(self, dirs: dict[str, Path]) -> None:
        fake_run, _ = _fake_ffmpeg()

        with patch("cuetrim.services.transcode.subprocess.run", side_effect=fake_run), patch(
            "cuetrim.services.transcode.shutil.move", side_effect=PermissionError("read-only share")
        ):
            with pytest.raises(CopyFailure, match="read-only share"):
                await _runner().run(dirs["source"], 500, dirs["temp"], dirs["import"], ASSET_ID)

        assert list(dirs["temp"].iterdir()) == []

    @pytest.mark.asyncio
    async def test_import_timeout_propagates(self, dirs: dict[str, Path]) -> None:
        fake_run, _ = _fake_ffmpeg()
        watcher = ImportWatcher(poll_interval=0.01, timeout=0.02, retries=0)

        with patch("cuetrim.services.transcode.subprocess.run", side_effect=fake_run):
            with pytest.raises(ImportTimeout):
                await _runner(watcher=watcher).run(dirs["source"], 500, dirs["temp"], dirs["import"], ASSET_ID)
