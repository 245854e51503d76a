"""
String enum definitions for log conversion concepts.
"""

from enum import Enum


class CallKind(str, Enum):
    """Kinds of call tokens found in tenhou.net/6 draw and discard arrays."""

    CHI = "chi"
    PON = "pon"
    OPEN_KAN = "open_kan"
    ADDED_KAN = "added_kan"
    CONCEALED_KAN = "concealed_kan"
    REACH = "reach"


# calls made on an opponent's discard (found in draw arrays)
DISCARD_CALL_KINDS = frozenset({CallKind.CHI, CallKind.PON, CallKind.OPEN_KAN})

# calls made on the caller's own turn (found in discard arrays)
SELF_CALL_KINDS = frozenset({CallKind.ADDED_KAN, CallKind.CONCEALED_KAN, CallKind.REACH})

KAN_KINDS = frozenset({CallKind.OPEN_KAN, CallKind.ADDED_KAN, CallKind.CONCEALED_KAN})


class GameLength(str, Enum):
    """Match length mode."""

    HANCHAN = "hanchan"  # East + South
    TONPUU = "tonpuu"  # East only

    @property
    def kyoku_first(self) -> int:
        """Value of the mjai start_game kyoku_first field for this mode."""
        return _KYOKU_FIRST[self]


_KYOKU_FIRST: dict[GameLength, int] = {
    GameLength.HANCHAN: 0,
    GameLength.TONPUU: 4,
}


class RoundEndType(str, Enum):
    """How a round concluded."""

    WIN = "win"
    DRAW = "draw"

