"""Push adjusted markers back to the inventory API."""

import logging

from cuetrim.errors import InventoryAPIError
from cuetrim.models.asset import MediaAssetRecord
from cuetrim.models.markers import TimerMarkerSet
from cuetrim.models.pipeline import UpdateResult
from cuetrim.services.inventory import SUCCESS_STATUS, InventoryClient
from cuetrim.services.markers import TimerMarkerCodec

logger = logging.getLogger(__name__)


class MetadataUpdater:
    """Send complete asset records with merged markers.

    The update call replaces the whole record server-side, so a partial
    record would clear fields. The adjusted markers are always merged into
    a full copy of the record as fetched.
    """

    def __init__(self, client: InventoryClient):
        self.client = client

    @staticmethod
    def merge(record: MediaAssetRecord, adjusted_markers: TimerMarkerSet) -> MediaAssetRecord:
        """Return a complete copy of ``record`` carrying ``adjusted_markers``."""
        raw = TimerMarkerCodec.encode(adjusted_markers, record.raw_metadata)
        markers = record.markers.with_offsets(adjusted_markers.offsets)
        return record.with_markers(markers, raw)

    async def push(self, record: MediaAssetRecord, adjusted_markers: TimerMarkerSet) -> UpdateResult:
        """Push ``adjusted_markers`` for the asset in ``record``."""
        updated = self.merge(record, adjusted_markers)
        try:
            status, description = await self.client.update(updated)
        except InventoryAPIError as e:
            logger.error("Update of %s failed: %s", record.asset_id, e)
            return UpdateResult.rejected(str(e))

        if status != SUCCESS_STATUS:
            reason = description or status or "no status in reply"
            logger.error("Update of %s rejected: %s", record.asset_id, reason)
            return UpdateResult.rejected(reason)

        logger.info("Updated markers for %s: %s", record.asset_id, updated.markers.as_dict())
        return UpdateResult.success()
