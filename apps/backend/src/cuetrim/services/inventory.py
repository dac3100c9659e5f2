"""Client for the automation server's XML inventory API.

Every call is an HTTP POST of an XML request envelope to a single path.
Replies carry a ``status`` element (``Success`` or a failure code) and,
on failure, a ``description``.
"""

import logging
import re
import xml.etree.ElementTree as ET
from xml.sax.saxutils import escape

import httpx

from cuetrim.errors import FetchFailure, InventoryAPIError
from cuetrim.models.asset import AssetId, MediaAssetRecord
from cuetrim.services.markers import TimerMarkerCodec

logger = logging.getLogger(__name__)

SUCCESS_STATUS = "Success"

_MEDIA_ASSET_RE = re.compile(r"<mediaAsset\b.*?</mediaAsset\s*>", re.DOTALL)


def _text(element: ET.Element, tag: str, default: str = "") -> str:
    child = element.find(tag)
    if child is None or child.text is None:
        return default
    return child.text.strip()


def _float_or_none(value: str) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _int_or_zero(value: str) -> int:
    try:
        return max(0, int(value))
    except ValueError:
        return 0


def build_fetch_request(client_id: str, asset_id: AssetId) -> bytes:
    """Build the envelope that asks for one asset record."""
    root = ET.Element("getMediaAssetRequest")
    ET.SubElement(root, "clientId").text = client_id
    ET.SubElement(root, "category").text = asset_id.category
    ET.SubElement(root, "cartNumber").text = asset_id.cart_id
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def build_update_request(client_id: str, record: MediaAssetRecord) -> bytes:
    """Build the envelope that replaces an asset record.

    The raw ``mediaAsset`` fragment is embedded verbatim so that fields
    this client does not model are sent back unchanged.
    """
    body = (
        '<?xml version="1.0" encoding="UTF-8"?>'
        "<updateMediaAssetRequest>"
        f"<clientId>{escape(client_id)}</clientId>"
        f"{record.raw_metadata}"
        "</updateMediaAssetRequest>"
    )
    return body.encode("utf-8")


def parse_reply_status(reply_text: str) -> tuple[str, str]:
    """Return ``(status, description)`` from a reply envelope."""
    try:
        root = ET.fromstring(reply_text)
    except ET.ParseError as e:
        raise InventoryAPIError(f"Unparsable reply from inventory API: {e}") from e
    return _text(root, "status"), _text(root, "description")


def parse_media_asset(fragment: str, asset_id: AssetId | None = None) -> MediaAssetRecord:
    """Parse a ``<mediaAsset>`` fragment into a record.

    Raises:
        FetchFailure: If the fragment is not valid XML or lacks an id
    """
    try:
        element = ET.fromstring(fragment)
    except ET.ParseError as e:
        raise FetchFailure(f"Malformed mediaAsset fragment: {e}") from e

    if asset_id is None:
        category = _text(element, "category")
        cart = _text(element, "cartNumber")
        if not category or not cart:
            raise FetchFailure("mediaAsset fragment has no category/cartNumber")
        try:
            asset_id = AssetId(category=category, cart_id=cart)
        except ValueError as e:
            raise FetchFailure(f"mediaAsset fragment has an invalid id: {e}") from e

    dow_hours: dict[str, str] = {}
    dow = element.find("dowHours")
    if dow is not None:
        for day in dow:
            dow_hours[day.tag] = (day.text or "").strip()

    return MediaAssetRecord(
        asset_id=asset_id,
        title=_text(element, "title"),
        alt_title=_text(element, "altTitle"),
        location=_text(element, "location"),
        audio_gain=_float_or_none(_text(element, "audioGain")),
        speed_adjust=_float_or_none(_text(element, "speedAdjust")),
        asset_type=_text(element, "assetType"),
        length_ms=_int_or_zero(_text(element, "length", "0")),
        dow_hours=dow_hours,
        markers=TimerMarkerCodec.decode(fragment),
        raw_metadata=fragment,
    )


class InventoryClient:
    """Async client for the fetch and update calls the trim pipeline needs."""

    def __init__(
        self,
        base_url: str,
        client_id: str,
        path: str = "/ras/inventory",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the inventory client.

        Args:
            base_url: Server base URL, e.g. ``http://automation:8080``
            client_id: Identifier sent in every request envelope
            path: Fixed path all envelopes are posted to
            timeout: HTTP request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        self.path = "/" + path.lstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}{self.path}"

    async def _post(self, body: bytes) -> str:
        """POST an envelope and return the reply text."""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    self.endpoint,
                    content=body,
                    headers={"Content-Type": "text/xml; charset=utf-8"},
                )
            except httpx.RequestError as e:
                raise InventoryAPIError(f"Failed to connect to inventory API: {e}") from e

        if response.status_code != 200:
            raise InventoryAPIError(
                f"Inventory API returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response.text

    async def fetch(self, asset_id: AssetId) -> MediaAssetRecord:
        """Fetch the full record for ``asset_id``.

        Raises:
            FetchFailure: If the server is unreachable, answers with a
                non-success status, or sends an unusable record
        """
        try:
            reply = await self._post(build_fetch_request(self.client_id, asset_id))
            status, description = parse_reply_status(reply)
        except InventoryAPIError as e:
            raise FetchFailure(f"{asset_id}: {e}") from e

        if status != SUCCESS_STATUS:
            raise FetchFailure(f"{asset_id}: {status or 'no status'} {description}".rstrip())

        match = _MEDIA_ASSET_RE.search(reply)
        if match is None:
            raise FetchFailure(f"{asset_id}: reply has no mediaAsset record")

        record = parse_media_asset(match.group(0), asset_id)
        logger.debug("Fetched %s (%s)", asset_id, record.title)
        return record

    async def update(self, record: MediaAssetRecord) -> tuple[str, str]:
        """Send the complete ``record`` back.

        Returns:
            ``(status, description)`` from the reply

        Raises:
            InventoryAPIError: On transport or protocol errors
        """
        reply = await self._post(build_update_request(self.client_id, record))
        return parse_reply_status(reply)
