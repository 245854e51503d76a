"""Round reconstruction -- merge the eight per-seat arrays into one event stream.

tenhou.net/6 stores a round as four draw arrays and four discard arrays with
no global ordering. The reconstructor replays the round as a scheduler over
index cursors into those arrays: the current actor draws (or calls), then
discards (or kans, or declares reach), and the next actor is whoever calls
the discard, else the right-hand neighbour. Deferred effects are tracked as
plain fields:

- a kan dora owed after an open or added kan, revealed after the next real
  discard;
- a dora still owed when an added kan is declared, held back until the
  replacement draw since the added kan can be robbed;
- reach confirmations, emitted after the declaring seat's next draw or call;
- the last tile drawn, used to recover the identity of a tsumogiri discard.

The round ends when the current actor has no discard left (self-draw win or
nine-terminal abort) or when every draw array is exhausted.

A call on a tile that its source seat discards again later cannot be placed
from the arrays alone. reconstruct_round() first attaches it to the earlier
discard and, if the replay then fails, replays the round with the call moved
to the later one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from convlog.logic.calls import Call, decode_discard_token, decode_draw_token
from convlog.logic.enums import CallKind, RoundEndType
from convlog.logic.events import (
    AbortiveDrawEvent,
    AddedKanEvent,
    ChiEvent,
    ConcealedKanEvent,
    DiscardEvent,
    DoraRevealEvent,
    DrawEvent,
    GameEvent,
    OpenKanEvent,
    PonEvent,
    ReachConfirmedEvent,
    ReachDeclaredEvent,
    RoundEndEvent,
    RoundStartEvent,
    WinEvent,
)
from convlog.logic.exceptions import (
    ConvertError,
    ExhaustedSequenceError,
    InconsistentRoundError,
    MalformedTokenError,
)
from convlog.logic.tiles import TENHOU_TSUMOGIRI, Tile, tiles_to_string
from convlog.logic.types import (
    NUM_PLAYERS,
    ActionTable,
    CallTokenItem,
    Round,
    TileItem,
    TsumogiriItem,
)

if TYPE_CHECKING:
    from convlog.logic.types import RoundMeta

logger = structlog.get_logger()

_TSUMOGIRI = TsumogiriItem()

# upper bound on replays of one round while placing calls on repeated discards
MAX_ROUND_ATTEMPTS = 64

DrawEntry = Tile | Call
DiscardEntry = Tile | TsumogiriItem | Call


def _decode_draws(seat: int, table: ActionTable) -> tuple[DrawEntry, ...]:
    entries: list[DrawEntry] = []
    for item in table.draws:
        if isinstance(item, TileItem):
            entries.append(item.tile)
        elif isinstance(item, CallTokenItem):
            entries.append(decode_draw_token(seat, item.token))
        else:
            raise MalformedTokenError(str(TENHOU_TSUMOGIRI), reason="tsumogiri marker in draw array", seat=seat)
    return tuple(entries)


def _decode_discards(seat: int, table: ActionTable) -> tuple[DiscardEntry, ...]:
    """Decode a discard array, expanding each reach into (reach call, paired discard)."""
    entries: list[DiscardEntry] = []
    for item in table.discards:
        if isinstance(item, TileItem):
            entries.append(item.tile)
        elif isinstance(item, TsumogiriItem):
            entries.append(_TSUMOGIRI)
        else:
            call = decode_discard_token(seat, item.token)
            entries.append(call)
            if call.kind == CallKind.REACH:
                entries.append(_TSUMOGIRI if call.tile is None else call.tile)
    return tuple(entries)


def _discard_tiles(draws: tuple[DrawEntry, ...], discards: tuple[DiscardEntry, ...]) -> tuple[Tile | None, ...]:
    """
    Name the tile of every discard ahead of the replay.

    Each discard pairs with the seat's draw of the same turn, so a tsumogiri
    takes the tile of that draw. Entries that are not tile discards map to None.
    """
    tiles: list[Tile | None] = [entry if isinstance(entry, Tile) else None for entry in discards]
    index = 0
    for draw in draws:
        entry = discards[index] if index < len(discards) else None
        if isinstance(entry, Call) and entry.kind == CallKind.REACH:
            index += 1
            entry = discards[index] if index < len(discards) else None
        if entry is None:
            break
        if isinstance(entry, TsumogiriItem) and isinstance(draw, Tile):
            tiles[index] = draw
        index += 1
    return tuple(tiles)


def _call_event(call: Call) -> GameEvent:
    # tile is always set for chi, pon and kans; only a reach may omit it
    tile = call.tile if call.tile is not None else Tile.UNKNOWN
    if call.kind == CallKind.CHI:
        return ChiEvent(actor=call.actor, target=call.target, tile=tile, consumed=call.consumed)
    if call.kind == CallKind.PON:
        return PonEvent(actor=call.actor, target=call.target, tile=tile, consumed=call.consumed)
    if call.kind == CallKind.OPEN_KAN:
        return OpenKanEvent(actor=call.actor, target=call.target, tile=tile, consumed=call.consumed)
    if call.kind == CallKind.ADDED_KAN:
        return AddedKanEvent(actor=call.actor, tile=tile, consumed=call.consumed)
    if call.kind == CallKind.CONCEALED_KAN:
        return ConcealedKanEvent(actor=call.actor, consumed=call.consumed)
    raise ValueError(f"no call event for {call.kind}")


class RoundReconstructor:
    """
    Rebuild the ordered event list of one round.

    An instance is single-use: construct it with a Round and call run() once.
    Errors raised while reconstructing are located with the round index,
    honba and, where known, the seat being processed.

    branches maps a discarded tile to whether a call on it is taken at its
    first discard (True) or deferred to a later identical one (False). It is
    shared across replays of the same round and updated in place.
    """

    def __init__(self, round_: Round, branches: dict[Tile, bool] | None = None) -> None:
        self._meta: RoundMeta = round_.meta
        self._tables = round_.tables
        self._branches = branches if branches is not None else {}
        self._draws: list[tuple[DrawEntry, ...]] = []
        self._discards: list[tuple[DiscardEntry, ...]] = []
        self._discard_tiles: list[tuple[Tile | None, ...]] = []
        self._draw_cursor = [0] * NUM_PLAYERS
        self._discard_cursor = [0] * NUM_PLAYERS
        self._dora_cursor = 0
        self._dora_owed = False
        self._dora_at_draw = False
        # several seats can declare reach before the first declarer's next turn
        self._pending_reach: set[int] = set()
        self._last_draw: Tile | None = None
        self._last_discard: tuple[int, Tile] | None = None
        self._actor = self._meta.dealer
        self._events: list[GameEvent] = []

    def run(self) -> list[GameEvent]:
        try:
            self._decode_tables()
            self._start_round()
            self._replay()
        except ConvertError as exc:
            exc.locate(round_index=self._meta.round_index, honba=self._meta.honba, seat=self._actor)
            raise
        return self._events

    def _decode_tables(self) -> None:
        for seat, table in enumerate(self._tables):
            try:
                draws = _decode_draws(seat, table)
                discards = _decode_discards(seat, table)
            except ConvertError as exc:
                exc.locate(seat=seat)
                raise
            self._draws.append(draws)
            self._discards.append(discards)
            self._discard_tiles.append(_discard_tiles(draws, discards))

    def _start_round(self) -> None:
        meta = self._meta
        dora_marker = self._next_dora_indicator()
        self._events.append(
            RoundStartEvent(
                round_wind=meta.round_wind,
                dora_marker=dora_marker,
                kyoku=meta.kyoku,
                honba=meta.honba,
                riichi_sticks=meta.riichi_sticks,
                dealer=meta.dealer,
                scores=meta.scores,
                starting_hands=tuple(table.starting_hand for table in self._tables),
            )
        )
        logger.debug(
            "round started",
            round_index=meta.round_index,
            honba=meta.honba,
            dealer=meta.dealer,
            hands=[tiles_to_string(table.starting_hand) for table in self._tables],
        )

    def _replay(self) -> None:
        while True:
            actor = self._actor
            entry = self._pop_draw(actor)

            if isinstance(entry, Call):
                self._check_discard_call(entry)
                if entry.kind == CallKind.OPEN_KAN:
                    self._open_kan(entry)
                    continue
                self._events.append(_call_event(entry))
                self._last_draw = None
            else:
                if self._dora_at_draw:
                    self._dora_at_draw = False
                    self._events.append(DoraRevealEvent(dora_marker=self._next_dora_indicator()))
                self._events.append(DrawEvent(actor=actor, tile=entry))
                self._last_draw = entry

            if actor in self._pending_reach:
                self._pending_reach.discard(actor)
                self._events.append(ReachConfirmedEvent(actor=actor))

            if self._discard_cursor[actor] >= len(self._discards[actor]):
                logger.debug("round ended on own turn", actor=actor)
                self._end_round()
                return

            entry = self._pop_discard(actor)
            kan: Call | None = None
            if isinstance(entry, Call) and entry.kind == CallKind.REACH:
                self._events.append(ReachDeclaredEvent(actor=actor))
                self._discard(actor, self._pop_discard(actor))
                self._pending_reach.add(actor)
                logger.debug("reach declared", actor=actor)
            elif isinstance(entry, Call):
                kan = entry
                if self._dora_owed:
                    if kan.kind == CallKind.ADDED_KAN:
                        # a robbed added kan ends the round before the replacement draw
                        self._dora_at_draw = True
                    else:
                        self._reveal_dora()
                self._events.append(_call_event(kan))
                logger.debug("kan declared", actor=actor, kind=kan.kind, tile=kan.tile.mjai)
            else:
                self._discard(actor, entry)

            if all(self._draw_cursor[seat] >= len(self._draws[seat]) for seat in range(NUM_PLAYERS)):
                logger.debug("round ended on discard", actor=actor)
                self._end_round()
                return

            if kan is not None:
                if kan.kind == CallKind.CONCEALED_KAN:
                    self._reveal_dora()
                else:
                    self._dora_owed = True
                continue

            self._actor = self._next_actor(actor)

    def _open_kan(self, call: Call) -> None:
        """Emit an open kan and drop the placeholder it leaves in the discard array."""
        if self._dora_owed:
            self._reveal_dora()
        self._events.append(_call_event(call))
        self._last_draw = None
        self._dora_owed = True
        placeholder = self._pop_discard(call.actor)
        if placeholder != Tile.UNKNOWN:
            raise InconsistentRoundError(f"expected kan placeholder after open kan {call.token!r}, got {placeholder!r}")
        logger.debug("kan declared", actor=call.actor, kind=call.kind, tile=call.tile.mjai)

    def _discard(self, actor: int, entry: DiscardEntry) -> None:
        """Emit a real discard, backfilling tsumogiri, then any owed dora."""
        if isinstance(entry, Call):
            raise InconsistentRoundError(f"expected a discard, got call token {entry.token!r}")
        if isinstance(entry, TsumogiriItem):
            if self._last_draw is None:
                raise InconsistentRoundError("tsumogiri without a preceding draw")
            tile = self._last_draw
            tsumogiri = True
        else:
            tile = entry
            tsumogiri = False
        if tile == Tile.UNKNOWN:
            raise InconsistentRoundError("kan placeholder outside an open kan")

        self._events.append(DiscardEvent(actor=actor, tile=tile, tsumogiri=tsumogiri))
        self._last_draw = None
        self._last_discard = (actor, tile)
        if self._dora_owed:
            self._reveal_dora()

    def _check_discard_call(self, call: Call) -> None:
        """A call in a draw array must take the tile just discarded by its source seat."""
        if self._last_discard is None:
            raise InconsistentRoundError(f"call {call.token!r} before any discard")
        source, tile = self._last_discard
        if call.target != source or call.tile != tile:
            raise InconsistentRoundError(
                f"call {call.token!r} does not match the last discard ({tile.mjai} from seat {source})"
            )

    def _next_actor(self, actor: int) -> int:
        """Return the seat that calls the discard just made, else the right-hand neighbour."""
        source, tile = self._last_discard
        candidates = []
        for offset in range(1, NUM_PLAYERS):
            seat = (actor + offset) % NUM_PLAYERS
            entry = self._peek_draw(seat)
            if isinstance(entry, Call) and entry.target == source and entry.tile == tile:
                candidates.append(entry)

        if not candidates:
            return (actor + 1) % NUM_PLAYERS
        if len(candidates) == 1:
            return self._choose_branch(actor, tile, candidates[0].actor)

        # a chi cannot precede a pon or kan on the same discard
        others = [c for c in candidates if c.kind != CallKind.CHI]
        if len(others) != 1:
            tokens = ", ".join(repr(c.token) for c in candidates)
            raise InconsistentRoundError(f"ambiguous calls on {tile.mjai}: {tokens}")
        return self._choose_branch(actor, tile, others[0].actor)

    def _choose_branch(self, actor: int, tile: Tile, caller: int) -> int:
        """
        Decide whether the call on this discard belongs here or to a later identical one.

        Only a seat that still has the same tile queued for discard leaves the
        choice open. The first replay takes the call now; a failed replay
        defers it once, and a second failure drops the entry so the search
        falls back to an earlier choice.
        """
        cursor = self._discard_cursor[actor]
        if tile not in self._discard_tiles[actor][cursor:]:
            return caller

        taken = self._branches.get(tile)
        if taken is None:
            self._branches[tile] = True
            return caller
        if taken:
            self._branches[tile] = False
        else:
            del self._branches[tile]
        logger.debug("call deferred to a later discard", actor=actor, caller=caller, tile=tile.mjai)
        return (actor + 1) % NUM_PLAYERS

    def _end_round(self) -> None:
        end = self._meta.end
        if end.type == RoundEndType.WIN:
            if not end.wins:
                raise InconsistentRoundError("win recorded without winners")
            self._events.extend(
                WinEvent(
                    actor=win.actor,
                    target=win.target,
                    deltas=win.deltas,
                    ura_markers=self._meta.ura_indicators,
                )
                for win in end.wins
            )
        else:
            self._events.append(AbortiveDrawEvent(deltas=end.deltas))
        self._events.append(RoundEndEvent())

    def _reveal_dora(self) -> None:
        self._events.append(DoraRevealEvent(dora_marker=self._next_dora_indicator()))
        self._dora_owed = False

    def _next_dora_indicator(self) -> Tile:
        indicators = self._meta.dora_indicators
        if self._dora_cursor >= len(indicators):
            raise ExhaustedSequenceError("dora_indicators")
        tile = indicators[self._dora_cursor]
        self._dora_cursor += 1
        return tile

    def _peek_draw(self, seat: int) -> DrawEntry | None:
        cursor = self._draw_cursor[seat]
        queue = self._draws[seat]
        return queue[cursor] if cursor < len(queue) else None

    def _pop_draw(self, seat: int) -> DrawEntry:
        entry = self._peek_draw(seat)
        if entry is None:
            raise ExhaustedSequenceError("draws", seat=seat)
        self._draw_cursor[seat] += 1
        return entry

    def _pop_discard(self, seat: int) -> DiscardEntry:
        cursor = self._discard_cursor[seat]
        queue = self._discards[seat]
        if cursor >= len(queue):
            raise ExhaustedSequenceError("discards", seat=seat)
        self._discard_cursor[seat] += 1
        return queue[cursor]


def reconstruct_round(round_: Round) -> list[GameEvent]:
    """
    Return the ordered events of one round, from start_kyoku to end_kyoku.

    The round is replayed while a call on a repeated discard is still open to
    another placement. If every placement fails, the error of the first
    replay is raised.
    """
    branches: dict[Tile, bool] = {}
    first_error: ConvertError | None = None
    for attempt in range(1, MAX_ROUND_ATTEMPTS + 1):
        try:
            return RoundReconstructor(round_, branches).run()
        except (InconsistentRoundError, ExhaustedSequenceError) as exc:
            if first_error is None:
                first_error = exc
            if not branches:
                break
            logger.debug(
                "replaying round",
                round_index=round_.meta.round_index,
                attempt=attempt,
                error=str(exc),
                branches={tile.mjai: taken for tile, taken in branches.items()},
            )
    raise first_error
