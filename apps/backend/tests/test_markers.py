"""Tests for the timer marker codec."""

import xml.etree.ElementTree as ET

import pytest

from cuetrim.models.markers import MarkerName, TimerMarkerSet
from cuetrim.services.markers import TimerMarkerCodec, decode_markers, encode_markers

FRAGMENT = (
    "<mediaAsset>"
    "<category>MUS</category><cartNumber>0012</cartNumber>"
    "<title>Morning Jingle</title>"
    "<timers>"
    '<timer millis="500">Start</timer>'
    '<timer millis="2000">Intro</timer>'
    '<timer millis="12000">HookStart</timer>'
    '<timer millis="30000">EOM</timer>'
    '<timer millis="7">Segue</timer>'
    "</timers>"
    "</mediaAsset>"
)


class TestDecode:
    def test_recognised_markers(self) -> None:
        markers = TimerMarkerCodec.decode(FRAGMENT)
        assert markers.as_dict() == {
            "Start": 500,
            "Intro": 2000,
            "HookStart": 12000,
            "EOM": 30000,
        }

    def test_missing_names_are_absent(self) -> None:
        markers = TimerMarkerCodec.decode(FRAGMENT)
        assert markers[MarkerName.HOOK_END] is None
        assert markers.get(MarkerName.END) == 0
        assert "End" not in markers

    def test_unrecognised_names_ignored(self) -> None:
        markers = TimerMarkerCodec.decode(FRAGMENT)
        assert "Segue" not in markers.as_dict()

    def test_first_occurrence_wins(self) -> None:
        fragment = '<timers><timer millis="100">Start</timer><timer millis="900">Start</timer></timers>'
        assert TimerMarkerCodec.decode(fragment).cue_offset_ms == 100

    def test_tolerates_quoting_and_whitespace(self) -> None:
        fragment = "<timers><timer  millis = '250' >\n  Start\n</timer></timers>"
        assert TimerMarkerCodec.decode(fragment).cue_offset_ms == 250

    def test_empty_fragment(self) -> None:
        assert TimerMarkerCodec.decode("").offsets == {}

    def test_is_repeatable(self) -> None:
        assert decode_markers(FRAGMENT) == decode_markers(FRAGMENT)


class TestEncode:
    def test_replaces_only_named_markers(self) -> None:
        out = TimerMarkerCodec.encode(TimerMarkerSet.of(Start=0, EOM=29500), FRAGMENT)
        assert '<timer millis="0">Start</timer>' in out
        assert '<timer millis="29500">EOM</timer>' in out
        # untouched markers and fields
        assert '<timer millis="2000">Intro</timer>' in out
        assert '<timer millis="7">Segue</timer>' in out
        assert "<title>Morning Jingle</title>" in out

    def test_unchanged_when_set_is_empty(self) -> None:
        assert TimerMarkerCodec.encode(TimerMarkerSet(), FRAGMENT) == FRAGMENT

    def test_inserts_missing_marker_before_timers_close(self) -> None:
        out = TimerMarkerCodec.encode(TimerMarkerSet.of(End=31000), FRAGMENT)
        assert '<timer millis="31000">End</timer></timers>' in out
        assert out.endswith("</mediaAsset>")

    def test_inserts_after_last_timer_without_container(self) -> None:
        fragment = (
            "<mediaAsset><category>MUS</category>"
            '<timer millis="500">Start</timer>'
            '<timer millis="30000">EOM</timer>'
            "<title>Jingle</title></mediaAsset>"
        )
        out = TimerMarkerCodec.encode(TimerMarkerSet.of(Start=0, Intro=0, EOM=29500), fragment)

        assert out == (
            "<mediaAsset><category>MUS</category>"
            '<timer millis="0">Start</timer>'
            '<timer millis="29500">EOM</timer>'
            '<timer millis="0">Intro</timer>'
            "<title>Jingle</title></mediaAsset>"
        )
        root = ET.fromstring(out)
        assert sorted(t.text for t in root.findall("timer")) == ["EOM", "Intro", "Start"]

    def test_inserts_into_empty_timers_container(self) -> None:
        out = TimerMarkerCodec.encode(TimerMarkerSet.of(Start=40), "<mediaAsset><timers></timers></mediaAsset>")
        assert out == '<mediaAsset><timers><timer millis="40">Start</timer></timers></mediaAsset>'

    def test_inserts_before_root_close_when_no_timers(self) -> None:
        out = TimerMarkerCodec.encode(TimerMarkerSet.of(Start=40), "<mediaAsset><title>x</title></mediaAsset>\n")
        assert out == '<mediaAsset><title>x</title><timer millis="40">Start</timer></mediaAsset>\n'

    def test_expands_self_closing_root(self) -> None:
        out = encode_markers(TimerMarkerSet.of(Start=40), '<mediaAsset id="1"/>')
        assert out == '<mediaAsset id="1"><timer millis="40">Start</timer></mediaAsset>'
        assert ET.fromstring(out).find("timer").text == "Start"

    def test_keeps_single_quotes(self) -> None:
        out = TimerMarkerCodec.encode(TimerMarkerSet.of(Start=0), "<timer millis='250'>Start</timer>")
        assert out == "<timer millis='0'>Start</timer>"

    def test_negative_values_survive(self) -> None:
        out = TimerMarkerCodec.encode(TimerMarkerSet.of(EOM=-500), FRAGMENT)
        assert TimerMarkerCodec.decode(out)[MarkerName.EOM] == -500


@pytest.mark.parametrize(
    "values",
    [
        {"Start": 0, "Intro": 0, "HookStart": 0, "HookEnd": 0, "EOM": 0, "End": 0},
        {"Start": 500, "Intro": 1500, "HookStart": 10000, "HookEnd": 15000, "EOM": 29500, "End": 30000},
        {"Start": 1, "Intro": 2, "HookStart": 3, "HookEnd": 4, "EOM": 5, "End": 6},
    ],
)
def test_round_trip_covering_all_names(values: dict[str, int]) -> None:
    markers = TimerMarkerSet.of(**values)
    assert TimerMarkerCodec.decode(TimerMarkerCodec.encode(markers, FRAGMENT)) == markers
