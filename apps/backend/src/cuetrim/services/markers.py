"""Timer marker codec.

Reads and rewrites ``<timer millis="N">Name</timer>`` elements embedded in
an asset's raw XML metadata. Only the ``millis`` values of recognised
markers are touched; every other byte of the fragment is preserved.
"""

import re

from cuetrim.models.markers import MarkerName, TimerMarkerSet

# <timer millis="N">Name</timer>, tolerant of quoting, extra attributes and whitespace
_TIMER_RE = re.compile(
    r"<timer\b[^>]*?\bmillis\s*=\s*([\"'])(?P<millis>-?\d+)\1[^>]*>"
    r"\s*(?P<name>[^<]*?)\s*</timer>",
    re.IGNORECASE,
)

_TIMERS_CLOSE_RE = re.compile(r"</timers\s*>", re.IGNORECASE)

# Closing tag, or self-closing tag, of the fragment's root element
_ROOT_CLOSE_RE = re.compile(r"</[\w:.-]+\s*>\s*\Z")
_ROOT_EMPTY_RE = re.compile(r"\s*<(?P<tag>[\w:.-]+)(?P<attrs>[^<>]*?)\s*/>\s*")

_NAMES = {name.value: name for name in MarkerName}


def _first_matches(fragment: str) -> dict[MarkerName, re.Match[str]]:
    """Return the first timer element for each recognised name."""
    found: dict[MarkerName, re.Match[str]] = {}
    for match in _TIMER_RE.finditer(fragment):
        name = _NAMES.get(match.group("name"))
        if name is not None and name not in found:
            found[name] = match
    return found


def _timer_element(name: MarkerName, millis: int) -> str:
    return f'<timer millis="{millis}">{name.value}</timer>'


def _insert_timers(fragment: str, addition: str) -> str:
    """Insert new timer elements where the fragment keeps its timers.

    That is right after the last timer element, else inside an empty
    ``<timers>`` container, else just before the root element closes.
    """
    last = None
    for last in _TIMER_RE.finditer(fragment):
        pass
    if last is not None:
        return fragment[: last.end()] + addition + fragment[last.end():]

    close = _TIMERS_CLOSE_RE.search(fragment)
    if close is None:
        close = _ROOT_CLOSE_RE.search(fragment)
    if close is not None:
        return fragment[: close.start()] + addition + fragment[close.start():]

    empty = _ROOT_EMPTY_RE.fullmatch(fragment)
    if empty is not None:
        tag = empty.group("tag")
        return f"<{tag}{empty.group('attrs')}>{addition}</{tag}>"

    # Bare marker text with no enclosing element
    return fragment + addition


class TimerMarkerCodec:
    """Pure encode/decode of timer markers in a metadata fragment."""

    @staticmethod
    def decode(fragment: str) -> TimerMarkerSet:
        """Extract the marker set from ``fragment``.

        Names that never appear are absent from the result. Timer elements
        with unrecognised names are ignored.
        """
        return TimerMarkerSet(
            offsets={
                name: int(match.group("millis"))
                for name, match in _first_matches(fragment).items()
            }
        )

    @staticmethod
    def encode(markers: TimerMarkerSet, fragment: str) -> str:
        """Write the markers present in ``markers`` into ``fragment``.

        Existing elements get their ``millis`` value replaced in place.
        Markers the fragment does not carry yet are added next to its
        existing timers, or inside its root element when it has none.
        """
        matches = _first_matches(fragment)
        replacements: list[tuple[int, int, str]] = []
        missing: list[str] = []

        for name in MarkerName:
            value = markers[name]
            if value is None:
                continue
            match = matches.get(name)
            if match is None:
                missing.append(_timer_element(name, value))
            else:
                replacements.append((match.start("millis"), match.end("millis"), str(value)))

        # Splice from the end so earlier offsets stay valid
        result = fragment
        for start, end, text in sorted(replacements, reverse=True):
            result = result[:start] + text + result[end:]

        if missing:
            result = _insert_timers(result, "".join(missing))

        return result


def decode_markers(fragment: str) -> TimerMarkerSet:
    """Shortcut for :meth:`TimerMarkerCodec.decode`."""
    return TimerMarkerCodec.decode(fragment)


def encode_markers(markers: TimerMarkerSet, fragment: str) -> str:
    """Shortcut for :meth:`TimerMarkerCodec.encode`."""
    return TimerMarkerCodec.encode(markers, fragment)
