"""Custom exceptions for cuetrim."""

from pathlib import Path


class CueTrimError(Exception):
    """Base exception for cuetrim."""

    pass


class InvalidAssetId(CueTrimError, ValueError):
    """Asset identifier could not be parsed."""

    pass


class InventoryAPIError(CueTrimError):
    """Inventory API request failed at the transport or protocol level."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class FetchFailure(CueTrimError):
    """Asset record could not be fetched."""

    pass


class CopyFailure(CueTrimError):
    """Audio file could not be copied or moved."""

    pass


class TranscodeFailure(CueTrimError):
    """External transcoder exited abnormally."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ImportTimeout(CueTrimError):
    """Server did not ingest the dropped file in time."""

    def __init__(self, path: Path, waited_seconds: float):
        super().__init__(f"Import not confirmed for {path} after {waited_seconds:.1f}s")
        self.path = path
        self.waited_seconds = waited_seconds


class MetadataUpdateRejected(CueTrimError):
    """Inventory API refused the metadata update."""

    def __init__(self, reason: str):
        super().__init__(f"Metadata update rejected: {reason}")
        self.reason = reason


class NegativeMarkerError(CueTrimError):
    """Trimming would move a marker before the start of the audio."""

    def __init__(self, marker: str, value: int):
        super().__init__(f"Marker {marker} would become negative ({value} ms)")
        self.marker = marker
        self.value = value


class PipelineError(CueTrimError):
    """Pipeline stage ran without the job state it needs."""

    pass


class InvalidStageTransition(CueTrimError):
    """Job was moved to a stage not reachable from its current one."""

    pass
