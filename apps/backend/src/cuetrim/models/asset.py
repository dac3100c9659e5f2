"""Media asset identity and record models."""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cuetrim.errors import InvalidAssetId
from cuetrim.models.markers import TimerMarkerSet

_ASSET_ID_RE = re.compile(r"^\s*([A-Za-z0-9]{3})\s*[/:\-\s]?\s*([A-Za-z0-9]{1,4})\s*$")


class AssetId(BaseModel):
    """Category + cart identifier of a media asset."""

    model_config = ConfigDict(frozen=True)

    category: str = Field(..., description="3-character category code")
    cart_id: str = Field(..., description="4-character cart number, zero-padded")

    @field_validator("category")
    @classmethod
    def validate_category(cls, value: str) -> str:
        value = value.strip().upper()
        if len(value) != 3 or not value.isalnum():
            raise ValueError(f"category must be 3 alphanumeric characters: {value!r}")
        return value

    @field_validator("cart_id")
    @classmethod
    def validate_cart_id(cls, value: str) -> str:
        value = value.strip().upper()
        if not value or len(value) > 4 or not value.isalnum():
            raise ValueError(f"cart id must be 1-4 alphanumeric characters: {value!r}")
        return value.zfill(4)

    @classmethod
    def parse(cls, text: str) -> "AssetId":
        """Parse ``MUS/0012``, ``MUS:12``, ``MUS 12`` or ``MUS0012``."""
        match = _ASSET_ID_RE.match(text)
        if not match:
            raise InvalidAssetId(f"Invalid asset id: {text!r}")
        return cls(category=match.group(1), cart_id=match.group(2))

    @property
    def import_filename(self) -> str:
        """File name the server routes to this asset on import."""
        return f"{self.category}{self.cart_id}.wav"

    @property
    def source_relpath(self) -> str:
        """Location of the asset's audio relative to the audio root."""
        return f"{self.category}/SP{self.cart_id}.wav"

    def __str__(self) -> str:
        return f"{self.category}/{self.cart_id}"


class MediaAssetRecord(BaseModel):
    """Full asset record as returned by the inventory API.

    ``raw_metadata`` holds the verbatim ``<mediaAsset>`` fragment; it is
    what gets sent back on update so fields this model does not know about
    survive the round trip.
    """

    asset_id: AssetId
    title: str = ""
    alt_title: str = ""
    location: str = ""
    audio_gain: float | None = None
    speed_adjust: float | None = None
    asset_type: str = ""
    length_ms: int = Field(0, ge=0, description="Audio length in milliseconds")
    dow_hours: dict[str, str] = Field(
        default_factory=dict, description="Day-of-week hour restrictions"
    )
    markers: TimerMarkerSet = Field(default_factory=TimerMarkerSet)
    raw_metadata: str = Field("", description="Verbatim mediaAsset XML fragment")

    def with_markers(self, markers: TimerMarkerSet, raw_metadata: str) -> "MediaAssetRecord":
        """Return a complete copy carrying new markers."""
        return self.model_copy(
            update={"markers": markers, "raw_metadata": raw_metadata},
            deep=True,
        )
