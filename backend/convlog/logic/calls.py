"""Call token decoding for tenhou.net/6 draw and discard arrays.

tenhou.net/6 stores calls as short strings inside a seat's draw array
(calls on an opponent's discard) or discard array (calls on the seat's own
turn). Each token is a run of two-digit tile codes with a single letter
marker. The marker letter gives the call kind; its offset gives the seat the
called tile came from:

    Token        Slot      Kind            Marker offsets (source seat)
    -----        ----      ----            ----------------------------
    c275226      draw      chi             0 (left)
    p252525      draw      pon             0 (left), 2 (across), 4 (right)
    m39393939    draw      open kan        0 (left), 2 (across), 6 (right)
    k16161616    discard   added kan       0 (left), 2 (across), 4 (right)
    424242a42    discard   concealed kan   6 (self)
    r35          discard   reach           0 (self)

The tile written right after the marker is the called tile (the added tile
for an added kan, the discarded tile for a reach); every other tile is
consumed from the caller's hand. A reach whose tile is 60 discards the tile
just drawn.

The grammar is positional: tokens of unexpected length or with a marker at
an unexpected offset are rejected, never repaired.
"""

from pydantic import BaseModel, ConfigDict

from convlog.logic.enums import DISCARD_CALL_KINDS, KAN_KINDS, CallKind
from convlog.logic.exceptions import InvalidTileError, MalformedTokenError
from convlog.logic.tiles import TENHOU_TSUMOGIRI, Tile, tile_from_tenhou
from convlog.logic.types import NUM_PLAYERS

# relative seat offsets: (caller + offset) % 4 is the source seat
_RIGHT = 1
_ACROSS = 2
_LEFT = 3
_SELF = 0

_TILE_WIDTH = 2
_REACH_TOKEN_LENGTH = 3
_REACH_MARKER = "r"

# marker -> (kind, token length, {marker offset: relative source seat})
_DRAW_GRAMMAR: dict[str, tuple[CallKind, int, dict[int, int]]] = {
    "c": (CallKind.CHI, 7, {0: _LEFT}),
    "p": (CallKind.PON, 7, {0: _LEFT, 2: _ACROSS, 4: _RIGHT}),
    "m": (CallKind.OPEN_KAN, 9, {0: _LEFT, 2: _ACROSS, 6: _RIGHT}),
}

_DISCARD_GRAMMAR: dict[str, tuple[CallKind, int, dict[int, int]]] = {
    "k": (CallKind.ADDED_KAN, 9, {0: _LEFT, 2: _ACROSS, 4: _RIGHT}),
    "a": (CallKind.CONCEALED_KAN, 9, {6: _SELF}),
}


class Call(BaseModel):
    """
    A fully decoded call.

    Attributes:
        kind: Call kind.
        actor: Seat making the call.
        target: Seat the called tile came from. For an added kan this is the
            source of the original pon. None for concealed kan and reach.
        tile: Called tile (chi, pon, open kan), added tile (added kan),
            representative tile (concealed kan) or the tile discarded to
            declare reach. None for a reach that discards the tile just drawn.
        consumed: Tiles taken from the caller's hand.
        token: The raw token, kept for error messages.

    """

    model_config = ConfigDict(frozen=True)

    kind: CallKind
    actor: int
    target: int | None = None
    tile: Tile | None = None
    consumed: tuple[Tile, ...] = ()
    token: str

    @property
    def is_discard_call(self) -> bool:
        """True for calls taken on an opponent's discard (chi, pon, open kan)."""
        return self.kind in DISCARD_CALL_KINDS

    @property
    def is_kan(self) -> bool:
        return self.kind in KAN_KINDS


def _tile_at(token: str, offset: int) -> Tile:
    """Decode the two-digit tile code at offset inside a token."""
    raw = token[offset : offset + _TILE_WIDTH]
    if len(raw) != _TILE_WIDTH or not raw.isdigit():
        raise InvalidTileError(raw, token=token, offset=offset)
    try:
        tile = tile_from_tenhou(int(raw))
    except InvalidTileError:
        raise InvalidTileError(raw, token=token, offset=offset) from None
    if tile == Tile.UNKNOWN:
        raise InvalidTileError(raw, token=token, offset=offset)
    return tile


def _tile_offsets(length: int, marker_offset: int) -> list[int]:
    """Offsets of the two-digit tile codes in a token, skipping the marker."""
    offsets = []
    position = 0
    while position < length:
        if position == marker_offset:
            position += 1
            continue
        offsets.append(position)
        position += _TILE_WIDTH
    return offsets


def _find_marker(token: str) -> int:
    """Return the offset of the single marker letter in a token."""
    letters = [i for i, ch in enumerate(token) if not ch.isdigit()]
    if len(letters) != 1:
        raise MalformedTokenError(token)
    return letters[0]


def _decode(
    seat: int,
    token: str,
    grammar: dict[str, tuple[CallKind, int, dict[int, int]]],
) -> Call:
    marker_offset = _find_marker(token)
    entry = grammar.get(token[marker_offset])
    if entry is None:
        raise MalformedTokenError(token)
    kind, length, sources = entry
    if len(token) != length or marker_offset not in sources:
        raise MalformedTokenError(token)

    offsets = _tile_offsets(length, marker_offset)
    called_offset = marker_offset + 1
    tile = _tile_at(token, called_offset)
    if kind == CallKind.CONCEALED_KAN:
        consumed = tuple(_tile_at(token, offset) for offset in offsets)
        return Call(kind=kind, actor=seat, tile=tile, consumed=consumed, token=token)

    consumed = tuple(_tile_at(token, offset) for offset in offsets if offset != called_offset)
    target = (seat + sources[marker_offset]) % NUM_PLAYERS
    return Call(kind=kind, actor=seat, target=target, tile=tile, consumed=consumed, token=token)


def decode_draw_token(seat: int, token: str) -> Call:
    """
    Decode a call token found in a seat's draw array.

    Only chi, pon and open kan are valid here.
    """
    return _decode(seat, token, _DRAW_GRAMMAR)


def decode_discard_token(seat: int, token: str) -> Call:
    """
    Decode a call token found in a seat's discard array.

    Only added kan, concealed kan and reach are valid here.
    """
    if token.startswith(_REACH_MARKER):
        if len(token) != _REACH_TOKEN_LENGTH:
            raise MalformedTokenError(token)
        raw = token[1:]
        if raw == str(TENHOU_TSUMOGIRI):
            return Call(kind=CallKind.REACH, actor=seat, token=token)
        return Call(kind=CallKind.REACH, actor=seat, tile=_tile_at(token, 1), token=token)
    return _decode(seat, token, _DISCARD_GRAMMAR)
