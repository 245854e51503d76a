"""
Tile representation for log conversion.

Tiles are indexed in a 38-slot space:

    0-8    1m-9m (characters)
    9-17   1p-9p (circles)
    18-26  1s-9s (bamboo)
    27-33  E, S, W, N, P (haku), F (hatsu), C (chun)
    34-36  red 5m, red 5p, red 5s
    37     unknown

tenhou.net/6 logs encode tiles as two-digit numbers: 11-19 man, 21-29 pin,
31-39 sou, 41-47 honors, 51-53 red fives, 0 for a hidden tile. mjai events
use short strings ("1m", "E", "5pr", "?").
"""

from collections.abc import Iterable
from enum import IntEnum

from mahjong.tile import TilesConverter

from convlog.logic.exceptions import InvalidTileError


class Tile(IntEnum):
    """A tile identity. Red fives are distinct from their plain counterparts."""

    M1 = 0
    M2 = 1
    M3 = 2
    M4 = 3
    M5 = 4
    M6 = 5
    M7 = 6
    M8 = 7
    M9 = 8
    P1 = 9
    P2 = 10
    P3 = 11
    P4 = 12
    P5 = 13
    P6 = 14
    P7 = 15
    P8 = 16
    P9 = 17
    S1 = 18
    S2 = 19
    S3 = 20
    S4 = 21
    S5 = 22
    S6 = 23
    S7 = 24
    S8 = 25
    S9 = 26
    EAST = 27
    SOUTH = 28
    WEST = 29
    NORTH = 30
    HAKU = 31
    HATSU = 32
    CHUN = 33
    M5R = 34
    P5R = 35
    S5R = 36
    UNKNOWN = 37

    @property
    def mjai(self) -> str:
        return MJAI_TILE_STRINGS[self]


MJAI_TILE_STRINGS = (
    *(f"{n}m" for n in range(1, 10)),
    *(f"{n}p" for n in range(1, 10)),
    *(f"{n}s" for n in range(1, 10)),
    "E",
    "S",
    "W",
    "N",
    "P",
    "F",
    "C",
    "5mr",
    "5pr",
    "5sr",
    "?",
)

_MJAI_TO_TILE = {s: Tile(i) for i, s in enumerate(MJAI_TILE_STRINGS)}

# number of valid identities excluding UNKNOWN
NUM_TILE_KINDS = 34
NUM_TILE_IDENTITIES = 37

HONOR_START = Tile.EAST

_RED_TO_PLAIN = {Tile.M5R: Tile.M5, Tile.P5R: Tile.P5, Tile.S5R: Tile.S5}
_PLAIN_TO_RED = {plain: red for red, plain in _RED_TO_PLAIN.items()}

# tenhou.net/6 numeric codes
TENHOU_UNKNOWN = 0
TENHOU_TSUMOGIRI = 60
_TENHOU_RED_START = 51
_TENHOU_HONOR_KIND = 4
_TENHOU_RED_KIND = 5


def tile_from_tenhou(code: int) -> Tile:
    """
    Convert a tenhou.net/6 numeric tile code to a Tile.

    0 decodes to Tile.UNKNOWN. The tsumogiri marker (60) is not a tile and is
    rejected here; callers that accept it check for it first.
    """
    if isinstance(code, bool) or not isinstance(code, int):
        raise InvalidTileError(code)
    if code == TENHOU_UNKNOWN:
        return Tile.UNKNOWN
    kind, num = divmod(code, 10)
    if 1 <= kind < _TENHOU_HONOR_KIND and 1 <= num <= 9:  # noqa: PLR2004
        return Tile((kind - 1) * 9 + num - 1)
    if kind == _TENHOU_HONOR_KIND and 1 <= num <= 7:  # noqa: PLR2004
        return Tile(HONOR_START + num - 1)
    if kind == _TENHOU_RED_KIND and 1 <= num <= 3:  # noqa: PLR2004
        return Tile(Tile.M5R + num - 1)
    raise InvalidTileError(code)


def tile_to_tenhou(tile: Tile) -> int:
    """Convert a Tile back to its tenhou.net/6 numeric code."""
    if tile == Tile.UNKNOWN:
        return TENHOU_UNKNOWN
    if tile in _RED_TO_PLAIN:
        return _TENHOU_RED_START + (tile - Tile.M5R)
    if tile >= HONOR_START:
        return _TENHOU_HONOR_KIND * 10 + (tile - HONOR_START) + 1
    kind, num = divmod(int(tile), 9)
    return (kind + 1) * 10 + num + 1


def tile_from_mjai(value: str) -> Tile:
    """Parse an mjai tile string ("5m", "5mr", "E", "?")."""
    try:
        return _MJAI_TO_TILE[value]
    except KeyError:
        raise InvalidTileError(value) from None


def is_aka(tile: Tile) -> bool:
    return tile in _RED_TO_PLAIN


def deaka(tile: Tile) -> Tile:
    """Return the plain counterpart of a red five; other tiles are unchanged."""
    return _RED_TO_PLAIN.get(tile, tile)


def akaize(tile: Tile) -> Tile:
    """Return the red counterpart of a plain five; other tiles are unchanged."""
    return _PLAIN_TO_RED.get(tile, tile)


def is_honor(tile: Tile) -> bool:
    return HONOR_START <= tile <= Tile.CHUN


def next_tile(tile: Tile) -> Tile:
    """
    Return the tile a dora indicator points at.

    Suits wrap 9 -> 1, winds wrap N -> E and dragons wrap C -> P.
    """
    tile = deaka(tile)
    if tile == Tile.UNKNOWN:
        raise ValueError("unknown tile has no successor")
    kind, num = divmod(int(tile), 9)
    if kind < 3:  # noqa: PLR2004
        return Tile(kind * 9 + (num + 1) % 9)
    if num < 4:  # noqa: PLR2004
        return Tile(HONOR_START + (num + 1) % 4)
    return Tile(Tile.HAKU + (num - 4 + 1) % 3)


def tile_sort_key(tile: Tile) -> int:
    """
    Display order key: man, pin, sou, honors, unknown last.

    A red five sorts directly before the plain five of the same suit.
    """
    if tile in _RED_TO_PLAIN:
        return (_RED_TO_PLAIN[tile] // 9) * 10 + 4
    kind, num = divmod(int(tile), 9)
    key = kind * 10 + num
    if kind < 3 and num >= 4:  # noqa: PLR2004
        key += 1
    return key


def sort_tiles(tiles: Iterable[Tile]) -> list[Tile]:
    return sorted(tiles, key=tile_sort_key)


def tiles_to_136_array(tiles: Iterable[Tile]) -> list[int]:
    """
    Map tiles onto the 136-format used by the mahjong library.

    Red fives become copy 0 of their kind (the library's aka copy), plain
    tiles become copy 1. Unknown tiles are skipped.
    """
    result = []
    for tile in tiles:
        if tile == Tile.UNKNOWN:
            continue
        if tile in _RED_TO_PLAIN:
            result.append(_RED_TO_PLAIN[tile] * 4)
        else:
            result.append(tile * 4 + 1)
    return result


def tiles_to_string(tiles: Iterable[Tile]) -> str:
    """Render tiles as a one-line hand string, e.g. "1230m456p11z" (0 = red five)."""
    return TilesConverter.to_one_line_string(tiles_to_136_array(tiles), print_aka_dora=True)
