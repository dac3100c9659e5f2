"""Services module for cuetrim."""

from cuetrim.services.ingest import ImportWatcher
from cuetrim.services.inventory import InventoryClient
from cuetrim.services.markers import TimerMarkerCodec
from cuetrim.services.planner import CueTrimPlanner
from cuetrim.services.transcode import AudioTranscodeRunner
from cuetrim.services.updater import MetadataUpdater

__all__ = [
    "TimerMarkerCodec",
    "CueTrimPlanner",
    "AudioTranscodeRunner",
    "ImportWatcher",
    "InventoryClient",
    "MetadataUpdater",
]
