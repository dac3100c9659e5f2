"""Tests for ImportWatcher."""

from pathlib import Path

import pytest

from cuetrim.errors import ImportTimeout
from cuetrim.services.ingest import ImportWatcher, file_consumed


def test_file_consumed(tmp_path: Path) -> None:
    target = tmp_path / "MUS0012.wav"
    target.write_bytes(b"RIFF")
    assert not file_consumed(target)
    target.unlink()
    assert file_consumed(target)


def test_invalid_settings() -> None:
    with pytest.raises(ValueError):
        ImportWatcher(poll_interval=0)
    with pytest.raises(ValueError):
        ImportWatcher(timeout=0)


class TestWaitForIngest:
    @pytest.mark.asyncio
    async def test_returns_once_file_is_gone(self, tmp_path: Path) -> None:
        target = tmp_path / "MUS0012.wav"
        target.write_bytes(b"RIFF")
        calls = 0

        def probe(path: Path) -> bool:
            nonlocal calls
            calls += 1
            if calls == 2:
                path.unlink()
            return file_consumed(path)

        watcher = ImportWatcher(poll_interval=0.01, timeout=5.0, probe=probe)
        waited = await watcher.wait_for_ingest(target)

        assert calls == 2
        assert waited >= 0

    @pytest.mark.asyncio
    async def test_async_probe(self, tmp_path: Path) -> None:
        async def probe(path: Path) -> bool:
            return True

        watcher = ImportWatcher(poll_interval=0.01, timeout=1.0, probe=probe)
        await watcher.wait_for_ingest(tmp_path / "x.wav")

    @pytest.mark.asyncio
    async def test_timeout_after_retries(self, tmp_path: Path) -> None:
        target = tmp_path / "MUS0012.wav"
        target.write_bytes(b"RIFF")
        watcher = ImportWatcher(poll_interval=0.01, timeout=0.02, retries=1, backoff=1.5)

        with pytest.raises(ImportTimeout) as exc_info:
            await watcher.wait_for_ingest(target)

        assert exc_info.value.path == target
        # first attempt 0.02s, retry 0.03s
        assert exc_info.value.waited_seconds >= 0.04

    @pytest.mark.asyncio
    async def test_retry_picks_up_late_ingest(self, tmp_path: Path) -> None:
        calls = 0

        def probe(path: Path) -> bool:
            nonlocal calls
            calls += 1
            return calls >= 3

        watcher = ImportWatcher(poll_interval=0.05, timeout=0.01, retries=5, backoff=1.0, probe=probe)
        await watcher.wait_for_ingest(tmp_path / "late.wav")

        assert calls == 3
