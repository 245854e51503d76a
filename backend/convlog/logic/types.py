"""
Pydantic models for the decoded source log.

A Match holds the match header and one Round per hand. Each Round pairs a
RoundMeta with four ActionTables (one per seat) holding the starting hand and
the seat's draw and discard arrays exactly as the source stores them. The
arrays are consumed by the round reconstructor, which merges them into one
ordered event stream.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from convlog.logic.enums import GameLength, RoundEndType
from convlog.logic.tiles import Tile

NUM_PLAYERS = 4
STARTING_HAND_SIZE = 13
NUM_ROUND_WINDS = 4

Seat = Annotated[int, Field(ge=0, le=NUM_PLAYERS - 1)]
ScoreRow = tuple[int, int, int, int]


class TileItem(BaseModel):
    """An ordinary draw or discard of a concrete tile."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tile"] = "tile"
    tile: Tile


class TsumogiriItem(BaseModel):
    """Discard of the tile just drawn; the tile is recovered from the draw."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tsumogiri"] = "tsumogiri"


class CallTokenItem(BaseModel):
    """An undecoded call token (chi, pon, kan or reach)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["call"] = "call"
    token: str


ActionItem = Annotated[TileItem | TsumogiriItem | CallTokenItem, Field(discriminator="kind")]


class ActionTable(BaseModel):
    """One seat's starting hand plus its draw and discard arrays for a round."""

    model_config = ConfigDict(frozen=True)

    starting_hand: tuple[Tile, ...] = Field(min_length=STARTING_HAND_SIZE, max_length=STARTING_HAND_SIZE)
    draws: tuple[ActionItem, ...] = ()
    discards: tuple[ActionItem, ...] = ()


class WinDetail(BaseModel):
    """One winner of a round. target == actor for a self-draw win."""

    model_config = ConfigDict(frozen=True)

    actor: Seat
    target: Seat
    deltas: ScoreRow = (0, 0, 0, 0)


class RoundEnd(BaseModel):
    """
    Recorded conclusion of a round.

    A win lists its winners in the order the source records them (several
    for a multiple ron). A draw carries the score deltas, if any, and the
    source's status text in reason.
    """

    model_config = ConfigDict(frozen=True)

    type: RoundEndType
    wins: tuple[WinDetail, ...] = ()
    deltas: ScoreRow | None = None
    reason: str = ""


class RoundMeta(BaseModel):
    """Round header: position in the match, table sticks, scores, indicators, result."""

    model_config = ConfigDict(frozen=True)

    round_index: int = Field(ge=0, lt=NUM_PLAYERS * NUM_ROUND_WINDS)
    honba: int = Field(ge=0)
    riichi_sticks: int = Field(ge=0)
    scores: ScoreRow
    dora_indicators: tuple[Tile, ...]
    ura_indicators: tuple[Tile, ...] = ()
    end: RoundEnd

    @property
    def dealer(self) -> int:
        return self.round_index % NUM_PLAYERS

    @property
    def round_wind(self) -> Tile:
        return Tile(Tile.EAST + self.round_index // NUM_PLAYERS)

    @property
    def kyoku(self) -> int:
        """Round number within the current wind, counting from 1."""
        return self.round_index % NUM_PLAYERS + 1


class Round(BaseModel):
    model_config = ConfigDict(frozen=True)

    meta: RoundMeta
    tables: tuple[ActionTable, ActionTable, ActionTable, ActionTable]


class Match(BaseModel):
    """A whole decoded match: header plus rounds in source order."""

    model_config = ConfigDict(frozen=True)

    names: tuple[str, str, str, str]
    game_length: GameLength = GameLength.HANCHAN
    has_red: bool = True
    rounds: tuple[Round, ...]

    def split_by_round(self) -> list[Match]:
        """Split into single-round matches that share this match's header."""
        return [self.model_copy(update={"rounds": (r,)}) for r in self.rounds]

    def anonymized(self) -> Match:
        """Replace seat names with placeholder names (Aさん .. Dさん)."""
        names = tuple(f"{alias}さん" for alias in "ABCD")
        return self.model_copy(update={"names": names})
