"""Audio trimming and reimport using FFmpeg."""

import asyncio
import logging
import shutil
import subprocess
from pathlib import Path

from cuetrim.errors import CopyFailure, TranscodeFailure
from cuetrim.models.asset import AssetId
from cuetrim.services.ingest import ImportWatcher

logger = logging.getLogger(__name__)


def format_seek(cue_offset_ms: int) -> str:
    """Format a millisecond offset as an FFmpeg seek value in seconds."""
    return f"{cue_offset_ms / 1000.0:.3f}"


class AudioTranscodeRunner:
    """Cut leading audio off a cart and hand the result to the server.

    The server's timers are in milliseconds while FFmpeg seeks in seconds,
    so the cue offset is divided by 1000. Audio is stream-copied; nothing
    is re-encoded.
    """

    def __init__(
        self,
        watcher: ImportWatcher | None = None,
        ffmpeg_path: str = "ffmpeg",
        timeout: float = 600.0,
    ):
        self.watcher = watcher or ImportWatcher()
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout

    async def run(
        self,
        source_path: Path,
        cue_offset_ms: int,
        temp_dir: Path,
        import_dir: Path,
        asset_id: AssetId,
    ) -> Path:
        """Trim ``source_path`` at ``cue_offset_ms`` and reimport it.

        Args:
            source_path: Audio file on the shared audio root
            cue_offset_ms: Amount of leading audio to drop
            temp_dir: Working directory for intermediate copies
            import_dir: Directory watched by the server
            asset_id: Asset the file is routed to on import

        Returns:
            Path the trimmed file was dropped at in ``import_dir``

        Raises:
            CopyFailure: If the file could not be copied or moved
            TranscodeFailure: If FFmpeg failed
            ImportTimeout: If the server did not pick up the file
        """
        working_copy = await self.copy_to_workdir(source_path, temp_dir, asset_id)
        trimmed = working_copy.with_name(f"{working_copy.stem}_trimmed{working_copy.suffix}")
        try:
            await self.trim(working_copy, trimmed, cue_offset_ms)
            import_path = await self.move_to_import(trimmed, import_dir, asset_id)
        finally:
            self.cleanup(working_copy, trimmed)

        await self.watcher.wait_for_ingest(import_path)
        return import_path

    async def copy_to_workdir(self, source_path: Path, temp_dir: Path, asset_id: AssetId) -> Path:
        """Copy the source audio into ``temp_dir``."""
        source_path = Path(source_path)
        if not source_path.is_file():
            raise CopyFailure(f"Source audio not found: {source_path}")

        target = Path(temp_dir) / f"{asset_id.category}{asset_id.cart_id}_source{source_path.suffix}"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(shutil.copy2, source_path, target)
        except OSError as e:
            raise CopyFailure(f"Failed to copy {source_path} to {target}: {e}") from e

        logger.debug("Copied %s to %s", source_path, target)
        return target

    async def trim(self, input_path: Path, output_path: Path, cue_offset_ms: int) -> Path:
        """Drop the first ``cue_offset_ms`` of ``input_path``.

        Raises:
            TranscodeFailure: On non-zero exit, missing binary, timeout
                or missing output
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        cmd = [
            self.ffmpeg_path,
            "-y",
            "-ss", format_seek(cue_offset_ms),
            "-i", str(input_path),
            "-c", "copy",  # Stream copy (fast, no re-encoding)
            str(output_path),
        ]
        logger.debug("Running ffmpeg: %s", cmd)

        try:
            result = await asyncio.to_thread(
                subprocess.run,
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise TranscodeFailure(f"ffmpeg not found: {self.ffmpeg_path}") from e
        except subprocess.TimeoutExpired as e:
            output_path.unlink(missing_ok=True)
            raise TranscodeFailure(f"ffmpeg timed out after {self.timeout:.0f}s") from e

        if result.returncode != 0:
            output_path.unlink(missing_ok=True)
            stderr = (result.stderr or "").strip()
            raise TranscodeFailure(
                f"ffmpeg failed (exit {result.returncode}): {stderr[-500:]}",
                returncode=result.returncode,
                stderr=stderr,
            )

        if not output_path.exists():
            raise TranscodeFailure(f"ffmpeg did not produce output: {output_path}")

        return output_path

    async def move_to_import(self, trimmed: Path, import_dir: Path, asset_id: AssetId) -> Path:
        """Move the trimmed file into the import directory under its routed name."""
        target = Path(import_dir) / asset_id.import_filename
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(shutil.move, str(trimmed), str(target))
        except OSError as e:
            raise CopyFailure(f"Failed to move {trimmed} to {target}: {e}") from e

        logger.info("Dropped %s for import", target)
        return target

    @staticmethod
    def cleanup(*paths: Path) -> None:
        """Remove intermediate files, ignoring ones already gone."""
        for path in paths:
            try:
                Path(path).unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove temporary file %s", path)
