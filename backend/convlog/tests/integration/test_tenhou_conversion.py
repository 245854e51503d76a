"""Integration test: load a tenhou.net/6 log file and verify the mjai stream."""

from pathlib import Path

from convlog.logic.events import (
    ChiEvent,
    DiscardEvent,
    DrawEvent,
    EventType,
    ReachConfirmedEvent,
    ReachDeclaredEvent,
)
from convlog.logic.match import convert_match
from convlog.logic.tiles import Tile
from convlog.messaging.encoder import (
    event_to_dict,
    events_from_jsonl,
    events_from_msgpack,
    events_to_jsonl,
    events_to_msgpack,
)
from convlog.tenhou import load_log_from_file
from convlog.tests.conftest import event_types

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _load_events():
    match = load_log_from_file(FIXTURES_DIR / "south_1_draw.json")
    return match, convert_match(match)


def test_south_round_with_chi_and_reach():
    """Load south_1_draw.json, convert it and verify the event stream."""
    match, events = _load_events()

    # Loaded match metadata
    assert match.names == ("", "", "", "")
    assert match.has_red is True
    assert len(match.rounds) == 1

    # Match and round headers
    assert event_to_dict(events[0]) == {
        "type": "start_game",
        "names": ["", "", "", ""],
        "kyoku_first": 0,
        "aka_flag": True,
    }
    start = event_to_dict(events[1])
    assert start["type"] == "start_kyoku"
    assert start["bakaze"] == "S"
    assert start["kyoku"] == 1
    assert start["oya"] == 0
    assert start["dora_marker"] == "C"
    assert start["tehais"][0] == ["2m", "4m", "5mr", "6m", "2p", "4p", "1s", "5sr", "6s", "7s", "6m", "8m", "N"]

    # First go-around, dealer first
    assert events[2:10] == [
        DrawEvent(actor=0, tile=Tile.SOUTH),
        DiscardEvent(actor=0, tile=Tile.NORTH),
        DrawEvent(actor=1, tile=Tile.M1),
        DiscardEvent(actor=1, tile=Tile.EAST),
        DrawEvent(actor=2, tile=Tile.M1),
        DiscardEvent(actor=2, tile=Tile.EAST),
        DrawEvent(actor=3, tile=Tile.M1),
        DiscardEvent(actor=3, tile=Tile.M7),
    ]

    # Dealer calls chi on the left seat's discard instead of drawing
    assert events[10] == ChiEvent(actor=0, target=3, tile=Tile.M7, consumed=(Tile.M6, Tile.M8))
    assert events[11] == DiscardEvent(actor=0, tile=Tile.S1)

    types = event_types(events)
    assert types.count("tsumo") == 48
    assert types.count("dahai") == 48
    assert types.count("chi") == 1
    assert types.count("reach") == 1
    assert types.count("reach_accepted") == 1

    # Reach is followed by the declaring discard and accepted after the next draw
    reach_at = types.index("reach")
    assert events[reach_at] == ReachDeclaredEvent(actor=2)
    assert events[reach_at + 1] == DiscardEvent(actor=2, tile=Tile.S5)
    accepted_at = types.index("reach_accepted")
    assert events[accepted_at] == ReachConfirmedEvent(actor=2)
    assert events[accepted_at - 1] == DrawEvent(actor=2, tile=Tile.M7)
    assert events[accepted_at + 1] == DiscardEvent(actor=2, tile=Tile.M7, tsumogiri=True)

    # Every tsumogiri marker is resolved to a concrete tile
    assert all(e.tile != Tile.UNKNOWN for e in events if isinstance(e, DiscardEvent))

    # The dealer draws the last tile with nothing left to discard
    tail = [event_to_dict(e) for e in events[-4:]]
    assert tail == [
        {"type": "tsumo", "actor": 0, "pai": "2p"},
        {"type": "ryukyoku", "deltas": [0, 0, 0, 0]},
        {"type": "end_kyoku"},
        {"type": "end_game"},
    ]


def test_tsumogiri_discards_repeat_the_drawn_tile():
    _, events = _load_events()

    for i, event in enumerate(events):
        if isinstance(event, DiscardEvent) and event.tsumogiri:
            drawn = events[i - 1]
            if drawn.type == EventType.REACH_ACCEPTED:
                drawn = events[i - 2]
            assert drawn == DrawEvent(actor=event.actor, tile=event.tile)


def test_jsonl_output_reads_back_identically():
    _, events = _load_events()

    content = events_to_jsonl(events)

    assert content.count("\n") == len(events)
    assert events_from_jsonl(content) == events


def test_msgpack_output_reads_back_identically():
    _, events = _load_events()

    assert events_from_msgpack(events_to_msgpack(events)) == events
