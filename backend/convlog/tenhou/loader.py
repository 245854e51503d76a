"""tenhou.net/6 log loader: parse the JSON export into a Match.

A tenhou.net/6 log is a JSON object with the seat names under "name", the
rule set under "rule" and one positional array per round under "log":

    [[kyoku_num, honba, kyotaku], scores, dora, ura,
     haipai_0, takes_0, discards_0, ..., haipai_3, takes_3, discards_3,
     results]

Draw and discard arrays mix tile codes, the tsumogiri marker (60) and call
token strings. Call tokens are kept undecoded here; the round reconstructor
decodes them with seat context.

Any structural problem raises LogLoadError chained to the underlying cause.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from convlog.logic.enums import GameLength, RoundEndType
from convlog.logic.exceptions import InvalidTileError
from convlog.logic.tiles import TENHOU_TSUMOGIRI, Tile, tile_from_tenhou
from convlog.logic.types import (
    NUM_PLAYERS,
    ActionItem,
    ActionTable,
    CallTokenItem,
    Match,
    Round,
    RoundEnd,
    RoundMeta,
    TileItem,
    TsumogiriItem,
    WinDetail,
)

WIN_STATUS = "和了"

_THREE_PLAYER_MARKERS = ("三", "3-Player")
_TONPUU_MARKERS = ("東", "East")
_RED_RULE_KEYS = ("aka", "aka51", "aka52", "aka53")

# meta, scores, dora, ura, 4 x (haipai, takes, discards), results
_ROUND_ARRAY_LENGTH = 4 + NUM_PLAYERS * 3 + 1
_TABLES_OFFSET = 4
_NO_DELTAS = (0, 0, 0, 0)


class LogLoadError(Exception):
    """Raised when a tenhou.net/6 log cannot be loaded or parsed."""


def parse_action_item(value: Any) -> ActionItem:
    """Parse one entry of a draw or discard array."""
    if isinstance(value, str):
        return CallTokenItem(token=value)
    if value == TENHOU_TSUMOGIRI and not isinstance(value, bool):
        return TsumogiriItem()
    return TileItem(tile=tile_from_tenhou(value))


def _parse_tiles(values: Any, what: str) -> tuple[Tile, ...]:
    if not isinstance(values, list):
        raise LogLoadError(f"{what} must be an array, got {type(values).__name__}")
    try:
        return tuple(tile_from_tenhou(v) for v in values)
    except InvalidTileError as exc:
        raise LogLoadError(f"{what}: {exc}") from exc


def _parse_actions(values: Any, what: str) -> tuple[ActionItem, ...]:
    if not isinstance(values, list):
        raise LogLoadError(f"{what} must be an array, got {type(values).__name__}")
    try:
        return tuple(parse_action_item(v) for v in values)
    except InvalidTileError as exc:
        raise LogLoadError(f"{what}: {exc}") from exc


def _parse_score_row(value: Any, what: str) -> tuple[int, int, int, int]:
    if (
        not isinstance(value, list)
        or len(value) != NUM_PLAYERS
        or not all(isinstance(v, int) and not isinstance(v, bool) for v in value)
    ):
        raise LogLoadError(f"{what} must be an array of {NUM_PLAYERS} integers, got {value!r}")
    return tuple(value)  # type: ignore[return-value]


def _parse_results(results: Any, round_number: int) -> RoundEnd:
    """Parse the results array of a round.

    ["和了", deltas, [who, target, ...], deltas, [who, target, ...], ...] is a
    win (several winners for a multiple ron); any other status text is a draw
    with optional deltas.
    """
    if not isinstance(results, list):
        raise LogLoadError(f"round {round_number}: results must be an array")
    if not results:
        return RoundEnd(type=RoundEndType.DRAW, deltas=_NO_DELTAS)

    status = results[0]
    if not isinstance(status, str):
        raise LogLoadError(f"round {round_number}: result status must be a string, got {status!r}")

    if status != WIN_STATUS:
        deltas = _NO_DELTAS
        if len(results) > 1:
            deltas = _parse_score_row(results[1], f"round {round_number} draw deltas")
        return RoundEnd(type=RoundEndType.DRAW, deltas=deltas, reason=status)

    wins = []
    details = results[1:]
    for i in range(0, len(details) - 1, 2):
        deltas = _parse_score_row(details[i], f"round {round_number} win deltas")
        who_target = details[i + 1]
        if (
            not isinstance(who_target, list)
            or len(who_target) < 2  # noqa: PLR2004
            or not all(isinstance(v, int) and not isinstance(v, bool) for v in who_target[:2])
        ):
            raise LogLoadError(f"round {round_number}: invalid win detail {who_target!r}")
        try:
            wins.append(WinDetail(actor=who_target[0], target=who_target[1], deltas=deltas))
        except ValidationError as exc:
            raise LogLoadError(f"round {round_number}: invalid win detail {who_target!r}") from exc
    return RoundEnd(type=RoundEndType.WIN, wins=tuple(wins), reason=status)


def _parse_round(raw: Any, round_number: int) -> Round:
    if not isinstance(raw, list) or len(raw) != _ROUND_ARRAY_LENGTH:
        raise LogLoadError(f"round {round_number}: expected an array of {_ROUND_ARRAY_LENGTH} items")

    meta = raw[0]
    if (
        not isinstance(meta, list)
        or len(meta) != 3  # noqa: PLR2004
        or not all(isinstance(v, int) and not isinstance(v, bool) for v in meta)
    ):
        raise LogLoadError(f"round {round_number}: invalid round header {meta!r}")
    round_index, honba, riichi_sticks = meta

    tables = []
    for seat in range(NUM_PLAYERS):
        base = _TABLES_OFFSET + seat * 3
        what = f"round {round_number} seat {seat}"
        try:
            tables.append(
                ActionTable(
                    starting_hand=_parse_tiles(raw[base], f"{what} haipai"),
                    draws=_parse_actions(raw[base + 1], f"{what} takes"),
                    discards=_parse_actions(raw[base + 2], f"{what} discards"),
                )
            )
        except ValidationError as exc:
            raise LogLoadError(f"{what}: invalid action table: {exc}") from exc

    try:
        round_meta = RoundMeta(
            round_index=round_index,
            honba=honba,
            riichi_sticks=riichi_sticks,
            scores=_parse_score_row(raw[1], f"round {round_number} scores"),
            dora_indicators=_parse_tiles(raw[2], f"round {round_number} dora"),
            ura_indicators=_parse_tiles(raw[3], f"round {round_number} ura dora"),
            end=_parse_results(raw[-1], round_number),
        )
    except ValidationError as exc:
        raise LogLoadError(f"round {round_number}: invalid round header: {exc}") from exc
    return Round(meta=round_meta, tables=tuple(tables))


def parse_log(data: Any) -> Match:
    """Build a Match from an already decoded tenhou.net/6 JSON object."""
    if not isinstance(data, dict):
        raise LogLoadError(f"log must be a JSON object, got {type(data).__name__}")

    rule = data.get("rule") or {}
    if not isinstance(rule, dict):
        raise LogLoadError("'rule' must be an object")
    disp = rule.get("disp", "")
    if not isinstance(disp, str):
        raise LogLoadError("'rule.disp' must be a string")
    if any(marker in disp for marker in _THREE_PLAYER_MARKERS):
        raise LogLoadError(f"not a four-player log: {disp!r}")
    game_length = GameLength.TONPUU if any(marker in disp for marker in _TONPUU_MARKERS) else GameLength.HANCHAN
    try:
        has_red = sum(int(rule.get(key, 0)) for key in _RED_RULE_KEYS) > 0
    except (TypeError, ValueError) as exc:
        raise LogLoadError(f"invalid red five rule: {exc}") from exc

    names = data.get("name")
    if not isinstance(names, list) or len(names) != NUM_PLAYERS or not all(isinstance(n, str) for n in names):
        raise LogLoadError(f"'name' must be an array of {NUM_PLAYERS} strings")

    raw_rounds = data.get("log")
    if not isinstance(raw_rounds, list):
        raise LogLoadError("'log' must be an array of rounds")

    rounds = tuple(_parse_round(raw, i) for i, raw in enumerate(raw_rounds))
    return Match(names=tuple(names), game_length=game_length, has_red=has_red, rounds=rounds)


def load_log_from_string(content: str) -> Match:
    """Parse a tenhou.net/6 JSON string into a Match."""
    content = content.strip()
    if not content:
        raise LogLoadError("Empty log content")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise LogLoadError(f"Malformed JSON: {exc}") from exc
    return parse_log(data)


def load_log_from_file(path: str | Path) -> Match:
    """Load a tenhou.net/6 log from a file path."""
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise LogLoadError(f"Cannot read log file {path}: {exc}") from exc
    return load_log_from_string(content)
