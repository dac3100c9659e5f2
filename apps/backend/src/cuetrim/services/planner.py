"""Cue trim planning.

The cue point (``Start``) becomes the new zero of the audio file. Markers
measured from the old start shift left by the trimmed duration, except an
unset ``Intro``, which must stay 0 so it keeps meaning "no intro".
"""

import logging

from cuetrim.config import NegativeMarkerPolicy
from cuetrim.errors import NegativeMarkerError
from cuetrim.models.markers import MarkerName, TimerMarkerSet
from cuetrim.models.pipeline import TrimDecision

logger = logging.getLogger(__name__)


class CueTrimPlanner:
    """Decide whether an asset needs trimming and compute its new markers."""

    def __init__(self, negative_markers: NegativeMarkerPolicy = NegativeMarkerPolicy.REJECT) -> None:
        self.negative_markers = negative_markers

    def plan(self, markers: TimerMarkerSet) -> TrimDecision:
        """Plan the trim for ``markers``.

        Returns:
            ``TrimDecision.no_trim_needed()`` when there is no cue point,
            otherwise a trim decision carrying the adjusted marker set.

        Raises:
            NegativeMarkerError: If the cue point itself is negative, or an
                adjusted marker would fall below zero, and the policy is
                ``reject``.
        """
        cue = markers.cue_offset_ms
        if cue == 0:
            return TrimDecision.no_trim_needed()
        if cue < 0:
            if self.negative_markers is NegativeMarkerPolicy.REJECT:
                raise NegativeMarkerError(MarkerName.START.value, cue)
            logger.warning("Ignoring negative cue point %d ms", cue)
            return TrimDecision.no_trim_needed("negative cue point")

        intro = markers.get(MarkerName.INTRO)
        updates = {
            MarkerName.START: 0,
            MarkerName.INTRO: 0 if intro == 0 else intro - cue,
            MarkerName.EOM: markers.get(MarkerName.EOM) - cue,
        }
        adjusted = markers.with_offsets(updates)

        for name, value in adjusted.offsets.items():
            if value >= 0:
                continue
            if self.negative_markers is NegativeMarkerPolicy.REJECT:
                raise NegativeMarkerError(name.value, value)
            logger.warning("Marker %s adjusted to negative offset %d ms", name.value, value)

        return TrimDecision.trim(cue, adjusted)
