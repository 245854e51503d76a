"""Canonical event models produced by log conversion.

The event set mirrors the mjai protocol: each model's type value is the mjai
message type and field aliases are the mjai field names, so
model_dump(by_alias=True) yields a ready-to-send mjai message. Tiles are
serialized as mjai strings ("5mr", "E", "?").

All layers import exclusively from this module for event types.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer

from convlog.logic.exceptions import InvalidTileError
from convlog.logic.tiles import Tile, tile_from_mjai


def _tile_to_mjai(v: Tile) -> str:
    return v.mjai


def _tile_from_wire(v: object) -> object:
    if isinstance(v, str):
        try:
            return tile_from_mjai(v)
        except InvalidTileError as exc:
            raise ValueError(str(exc)) from exc
    return v


MjaiTile = Annotated[Tile, BeforeValidator(_tile_from_wire), PlainSerializer(_tile_to_mjai)]


class EventType(StrEnum):
    """Types of canonical events (mjai message types)."""

    START_GAME = "start_game"
    START_KYOKU = "start_kyoku"
    TSUMO = "tsumo"
    DAHAI = "dahai"
    CHI = "chi"
    PON = "pon"
    DAIMINKAN = "daiminkan"
    KAKAN = "kakan"
    ANKAN = "ankan"
    DORA = "dora"
    REACH = "reach"
    REACH_ACCEPTED = "reach_accepted"
    HORA = "hora"
    RYUKYOKU = "ryukyoku"
    END_KYOKU = "end_kyoku"
    END_GAME = "end_game"


class GameEvent(BaseModel):
    """Base class for all canonical events."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: EventType


class MatchStartEvent(GameEvent):
    type: Literal[EventType.START_GAME] = EventType.START_GAME
    names: tuple[str, str, str, str]
    kyoku_first: int
    red_enabled: bool = Field(alias="aka_flag")


class RoundStartEvent(GameEvent):
    """Opens a round: table state plus every seat's starting hand."""

    type: Literal[EventType.START_KYOKU] = EventType.START_KYOKU
    round_wind: MjaiTile = Field(alias="bakaze")
    dora_marker: MjaiTile
    kyoku: int
    honba: int
    riichi_sticks: int = Field(alias="kyotaku")
    dealer: int = Field(alias="oya")
    scores: tuple[int, int, int, int]
    starting_hands: tuple[tuple[MjaiTile, ...], ...] = Field(alias="tehais")


class DrawEvent(GameEvent):
    type: Literal[EventType.TSUMO] = EventType.TSUMO
    actor: int
    tile: MjaiTile = Field(alias="pai")


class DiscardEvent(GameEvent):
    """A discard. tsumogiri is set when the discarded tile is the one just drawn."""

    type: Literal[EventType.DAHAI] = EventType.DAHAI
    actor: int
    tile: MjaiTile = Field(alias="pai")
    tsumogiri: bool = False


class ChiEvent(GameEvent):
    type: Literal[EventType.CHI] = EventType.CHI
    actor: int
    target: int
    tile: MjaiTile = Field(alias="pai")
    consumed: tuple[MjaiTile, MjaiTile]


class PonEvent(GameEvent):
    type: Literal[EventType.PON] = EventType.PON
    actor: int
    target: int
    tile: MjaiTile = Field(alias="pai")
    consumed: tuple[MjaiTile, MjaiTile]


class OpenKanEvent(GameEvent):
    """Kan called on an opponent's discard."""

    type: Literal[EventType.DAIMINKAN] = EventType.DAIMINKAN
    actor: int
    target: int
    tile: MjaiTile = Field(alias="pai")
    consumed: tuple[MjaiTile, MjaiTile, MjaiTile]


class AddedKanEvent(GameEvent):
    """Upgrade of an existing pon with the fourth tile."""

    type: Literal[EventType.KAKAN] = EventType.KAKAN
    actor: int
    tile: MjaiTile = Field(alias="pai")
    consumed: tuple[MjaiTile, MjaiTile, MjaiTile]


class ConcealedKanEvent(GameEvent):
    type: Literal[EventType.ANKAN] = EventType.ANKAN
    actor: int
    consumed: tuple[MjaiTile, MjaiTile, MjaiTile, MjaiTile]

    @property
    def tile(self) -> Tile:
        return self.consumed[-1]


class DoraRevealEvent(GameEvent):
    """A new dora indicator revealed after a kan."""

    type: Literal[EventType.DORA] = EventType.DORA
    dora_marker: MjaiTile


class ReachDeclaredEvent(GameEvent):
    type: Literal[EventType.REACH] = EventType.REACH
    actor: int


class ReachConfirmedEvent(GameEvent):
    """Reach declaration accepted (the declaring discard was not won on)."""

    type: Literal[EventType.REACH_ACCEPTED] = EventType.REACH_ACCEPTED
    actor: int


class WinEvent(GameEvent):
    """One winner of a round. target == actor for a self-draw win."""

    type: Literal[EventType.HORA] = EventType.HORA
    actor: int
    target: int
    deltas: tuple[int, int, int, int] | None = None
    ura_markers: tuple[MjaiTile, ...] | None = None


class AbortiveDrawEvent(GameEvent):
    """Round ended without a winner (exhaustive or abortive draw)."""

    type: Literal[EventType.RYUKYOKU] = EventType.RYUKYOKU
    deltas: tuple[int, int, int, int] | None = None


class RoundEndEvent(GameEvent):
    type: Literal[EventType.END_KYOKU] = EventType.END_KYOKU


class MatchEndEvent(GameEvent):
    type: Literal[EventType.END_GAME] = EventType.END_GAME


Event = Annotated[
    MatchStartEvent
    | RoundStartEvent
    | DrawEvent
    | DiscardEvent
    | ChiEvent
    | PonEvent
    | OpenKanEvent
    | AddedKanEvent
    | ConcealedKanEvent
    | DoraRevealEvent
    | ReachDeclaredEvent
    | ReachConfirmedEvent
    | WinEvent
    | AbortiveDrawEvent
    | RoundEndEvent
    | MatchEndEvent,
    Field(discriminator="type"),
]

CallEvent = ChiEvent | PonEvent | OpenKanEvent | AddedKanEvent | ConcealedKanEvent
