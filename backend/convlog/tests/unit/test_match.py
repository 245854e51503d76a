"""
Unit tests for match assembly: bracketing events, error propagation, and
the split-by-round equivalence.
"""

import logging

import pytest

from convlog.logic.enums import GameLength
from convlog.logic.events import MatchEndEvent, MatchStartEvent
from convlog.logic.exceptions import ExhaustedSequenceError
from convlog.logic.match import convert_match, convert_round
from convlog.tests.conftest import EMPTY_SEAT, create_match, create_round, event_types, win_end


def _rounds():
    return [
        create_round(
            [([21], [60]), ([22], [31]), ([23], [32]), ([24], [33])],
            round_index=0,
        ),
        create_round(
            [EMPTY_SEAT, ([21], []), EMPTY_SEAT, EMPTY_SEAT],
            round_index=1,
            end=win_end((1, 1, (-2000, 4000, -1000, -1000))),
        ),
        create_round(
            [EMPTY_SEAT, ([11], [60]), ([12], [60]), EMPTY_SEAT],
            round_index=1,
            honba=1,
        ),
    ]


class TestConvertMatch:
    def test_brackets_rounds_with_match_events(self):
        events = convert_match(create_match(_rounds()))

        assert events[0] == MatchStartEvent(
            names=("Alice", "Bob", "Carol", "Dave"),
            kyoku_first=0,
            red_enabled=True,
        )
        assert events[-1] == MatchEndEvent()
        assert event_types(events).count("start_kyoku") == 3
        assert event_types(events).count("end_kyoku") == 3

    def test_tonpuu_exports_kyoku_first_four(self):
        match = create_match(_rounds()[:1], game_length=GameLength.TONPUU, has_red=False)
        start = convert_match(match)[0]

        assert start.kyoku_first == 4
        assert start.red_enabled is False

    def test_every_round_is_bracketed(self):
        events = convert_match(create_match(_rounds()))
        types = event_types(events)[1:-1]

        starts = [i for i, t in enumerate(types) if t == "start_kyoku"]
        ends = [i for i, t in enumerate(types) if t == "end_kyoku"]
        assert starts[0] == 0
        assert ends[-1] == len(types) - 1
        assert all(end + 1 == start for end, start in zip(ends, starts[1:], strict=False))

    def test_empty_match(self):
        events = convert_match(create_match([]))

        assert event_types(events) == ["start_game", "end_game"]

    def test_error_aborts_the_whole_match(self):
        bad = create_round(
            [([11], [60]), EMPTY_SEAT, ([13], [60]), EMPTY_SEAT],
            round_index=2,
            honba=4,
        )
        match = create_match([_rounds()[0], bad, _rounds()[1]])

        with pytest.raises(ExhaustedSequenceError) as exc_info:
            convert_match(match)

        assert exc_info.value.round_index == 2
        assert exc_info.value.honba == 4

    def test_split_and_concatenate_equals_whole_match(self):
        match = create_match(_rounds())
        whole = convert_match(match)

        pieces = []
        for part in match.split_by_round():
            pieces.extend(convert_match(part)[1:-1])

        assert whole[1:-1] == pieces

    def test_split_matches_share_the_header(self):
        match = create_match(_rounds(), game_length=GameLength.TONPUU)
        parts = match.split_by_round()

        assert len(parts) == 3
        for part, round_ in zip(parts, match.rounds, strict=True):
            assert part.names == match.names
            assert part.game_length == GameLength.TONPUU
            assert part.rounds == (round_,)

    def test_anonymized_names(self):
        match = create_match(_rounds()).anonymized()
        start = convert_match(match)[0]

        assert start.names == ("Aさん", "Bさん", "Cさん", "Dさん")


class TestConvertRound:
    def test_binds_round_location_to_log_context(self, caplog):
        round_ = _rounds()[2]

        with caplog.at_level(logging.DEBUG):
            convert_round(round_)

        entries = [r.msg for r in caplog.records if isinstance(r.msg, dict)]
        converted = [entry for entry in entries if entry["event"] == "round converted"]
        assert len(converted) == 1
        assert converted[0]["round_index"] == 1
        assert converted[0]["honba"] == 1
