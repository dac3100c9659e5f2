"""Wait for the automation server to ingest a dropped file.

The server watches the import directory and consumes files routed by name.
By default ingestion is considered done once the dropped file is gone; a
custom probe can be supplied when the server offers a better signal.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from pathlib import Path

from cuetrim.errors import ImportTimeout

logger = logging.getLogger(__name__)

# Returns True once the file at the given path has been ingested
IngestProbe = Callable[[Path], bool | Awaitable[bool]]


def file_consumed(path: Path) -> bool:
    """Default probe: the server removes the file when it picks it up."""
    return not path.exists()


class ImportWatcher:
    """Bounded polling for ingestion, with retry and backoff.

    Each attempt polls ``probe`` every ``poll_interval`` seconds for up to
    ``timeout`` seconds. After a timed-out attempt the next one waits
    ``backoff`` times longer, up to ``retries`` extra attempts.
    """

    def __init__(
        self,
        poll_interval: float = 1.0,
        timeout: float = 60.0,
        retries: int = 2,
        backoff: float = 2.0,
        settle_seconds: float = 0.0,
        probe: IngestProbe | None = None,
    ):
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.retries = max(0, retries)
        self.backoff = max(1.0, backoff)
        self.settle_seconds = settle_seconds
        self.probe = probe or file_consumed

    async def _check(self, path: Path) -> bool:
        result = self.probe(path)
        if inspect.isawaitable(result):
            result = await result
        return bool(result)

    async def _poll(self, path: Path, timeout: float) -> bool:
        """Poll until the probe fires or ``timeout`` elapses."""
        deadline = time.monotonic() + timeout
        while True:
            if await self._check(path):
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            await asyncio.sleep(min(self.poll_interval, remaining))

    async def wait_for_ingest(self, path: Path) -> float:
        """Block until ``path`` has been ingested.

        Returns:
            Total seconds waited.

        Raises:
            ImportTimeout: If no attempt saw the ingestion signal.
        """
        started = time.monotonic()
        timeout = self.timeout

        for attempt in range(self.retries + 1):
            if await self._poll(path, timeout):
                if self.settle_seconds > 0:
                    await asyncio.sleep(self.settle_seconds)
                waited = time.monotonic() - started
                logger.info("Import of %s confirmed after %.1fs", path.name, waited)
                return waited

            if attempt < self.retries:
                timeout *= self.backoff
                logger.warning(
                    "Import of %s not confirmed yet (attempt %d/%d), waiting up to %.1fs more",
                    path.name,
                    attempt + 1,
                    self.retries + 1,
                    timeout,
                )

        raise ImportTimeout(path, time.monotonic() - started)
