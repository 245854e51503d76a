"""
Match assembly: bracket the reconstructed rounds with start_game / end_game.

Rounds are reconstructed one at a time in source order. Any ConvertError
aborts the whole match; errors already carry their round location.
"""

import structlog

from convlog.logic.events import GameEvent, MatchEndEvent, MatchStartEvent
from convlog.logic.round import reconstruct_round
from convlog.logic.types import Match, Round

logger = structlog.get_logger()


def convert_round(round_: Round) -> list[GameEvent]:
    """Reconstruct one round with its location bound to the log context."""
    meta = round_.meta
    with structlog.contextvars.bound_contextvars(round_index=meta.round_index, honba=meta.honba):
        events = reconstruct_round(round_)
        logger.debug("round converted", num_events=len(events))
    return events


def convert_match(match: Match) -> list[GameEvent]:
    """Convert a whole match into the canonical event list."""
    events: list[GameEvent] = [
        MatchStartEvent(
            names=match.names,
            kyoku_first=match.game_length.kyoku_first,
            red_enabled=match.has_red,
        )
    ]
    for round_ in match.rounds:
        events.extend(convert_round(round_))
    events.append(MatchEndEvent())
    logger.info("match converted", num_rounds=len(match.rounds), num_events=len(events))
    return events
