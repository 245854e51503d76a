from __future__ import annotations

from typing import TYPE_CHECKING

from convlog.logic.enums import GameLength, RoundEndType
from convlog.logic.tiles import tile_from_tenhou
from convlog.logic.types import (
    ActionTable,
    Match,
    Round,
    RoundEnd,
    RoundMeta,
    WinDetail,
)
from convlog.tenhou.loader import parse_action_item

if TYPE_CHECKING:
    from collections.abc import Sequence

# ============================================================================
# Round Builder Helpers
#
# Draw and discard arrays are written the way tenhou.net/6 stores them:
# tile codes (11-53, 0 for a kan placeholder), 60 for tsumogiri and call
# token strings.
# ============================================================================

DEFAULT_HAND = (11, 12, 13, 14, 15, 16, 17, 18, 19, 21, 22, 23, 24)
DEFAULT_SCORES = (25000, 25000, 25000, 25000)
NO_DELTAS = (0, 0, 0, 0)

EMPTY_SEAT: tuple[list, list] = ([], [])


def create_table(
    draws: Sequence[int | str] = (),
    discards: Sequence[int | str] = (),
    *,
    starting_hand: Sequence[int] = DEFAULT_HAND,
) -> ActionTable:
    """Create an ActionTable from raw tenhou.net/6 array values."""
    return ActionTable(
        starting_hand=tuple(tile_from_tenhou(code) for code in starting_hand),
        draws=tuple(parse_action_item(v) for v in draws),
        discards=tuple(parse_action_item(v) for v in discards),
    )


def draw_end(deltas: tuple[int, int, int, int] | None = NO_DELTAS, reason: str = "流局") -> RoundEnd:
    return RoundEnd(type=RoundEndType.DRAW, deltas=deltas, reason=reason)


def win_end(*wins: tuple[int, int, tuple[int, int, int, int]]) -> RoundEnd:
    """Create a win end from (actor, target, deltas) triples, in recorded order."""
    return RoundEnd(
        type=RoundEndType.WIN,
        wins=tuple(WinDetail(actor=a, target=t, deltas=d) for a, t, d in wins),
        reason="和了",
    )


def create_round(
    seats: Sequence[tuple[Sequence[int | str], Sequence[int | str]]],
    *,
    round_index: int = 0,
    honba: int = 0,
    riichi_sticks: int = 0,
    scores: tuple[int, int, int, int] = DEFAULT_SCORES,
    dora: Sequence[int] = (11, 12, 13, 14, 15),
    ura: Sequence[int] = (),
    end: RoundEnd | None = None,
) -> Round:
    """Create a Round from four (draws, discards) pairs, one per seat."""
    return Round(
        meta=RoundMeta(
            round_index=round_index,
            honba=honba,
            riichi_sticks=riichi_sticks,
            scores=scores,
            dora_indicators=tuple(tile_from_tenhou(code) for code in dora),
            ura_indicators=tuple(tile_from_tenhou(code) for code in ura),
            end=end if end is not None else draw_end(),
        ),
        tables=tuple(create_table(draws, discards) for draws, discards in seats),
    )


def create_match(
    rounds: Sequence[Round],
    *,
    names: tuple[str, str, str, str] = ("Alice", "Bob", "Carol", "Dave"),
    game_length: GameLength = GameLength.HANCHAN,
    has_red: bool = True,
) -> Match:
    return Match(names=names, game_length=game_length, has_red=has_red, rounds=tuple(rounds))


def event_types(events: Sequence) -> list[str]:
    """Return the mjai type of each event, for compact sequence assertions."""
    return [event.type.value for event in events]
