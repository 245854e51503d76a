"""
mjai codec for canonical events.

Events are written as mjai messages, either as JSON lines (one message per
line, the format mjai engines read) or as a stream of concatenated
MessagePack maps. Both formats can be read back into event models.
"""

import json
from collections.abc import Iterable
from typing import Any

import msgpack
from pydantic import TypeAdapter, ValidationError

from convlog.logic.events import Event, GameEvent

_event_adapter: TypeAdapter[Event] = TypeAdapter(Event)

# Size limits to prevent resource exhaustion from oversized inputs.
MAX_BUFFER_LEN = 64 * 1024 * 1024
MAX_STR_LEN = 64 * 1024


class DecodeError(Exception):
    """Error raised when an mjai message cannot be decoded into an event."""


def event_to_dict(event: GameEvent) -> dict[str, Any]:
    """Return the mjai message for an event. Absent optional fields are omitted."""
    return event.model_dump(mode="json", by_alias=True, exclude_none=True)


def event_to_json(event: GameEvent) -> str:
    return json.dumps(event_to_dict(event), ensure_ascii=False, separators=(",", ":"))


def events_to_jsonl(events: Iterable[GameEvent]) -> str:
    """Serialize events as mjai JSON lines, newline terminated."""
    return "".join(event_to_json(event) + "\n" for event in events)


def events_to_msgpack(events: Iterable[GameEvent]) -> bytes:
    """Serialize events as concatenated MessagePack maps."""
    packer = msgpack.Packer()
    return b"".join(packer.pack(event_to_dict(event)) for event in events)


def parse_event(data: dict[str, Any]) -> GameEvent:
    """
    Parse one mjai message into an event model.

    Raises DecodeError if the message type is unknown or a field is invalid.
    """
    if not isinstance(data, dict):
        raise DecodeError(f"expected dict, got {type(data).__name__}")
    try:
        return _event_adapter.validate_python(data)
    except ValidationError as e:
        raise DecodeError(f"invalid mjai message {data.get('type')!r}: {e}") from e


def events_from_jsonl(content: str) -> list[GameEvent]:
    """Parse mjai JSON lines. Blank lines are skipped."""
    events = []
    for lineno, line in enumerate(content.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise DecodeError(f"line {lineno}: malformed JSON: {e}") from e
        events.append(parse_event(data))
    return events


def events_from_msgpack(data: bytes) -> list[GameEvent]:
    """Parse a stream of concatenated MessagePack maps."""
    if len(data) > MAX_BUFFER_LEN:
        raise DecodeError(f"payload too large: {len(data)} bytes (max {MAX_BUFFER_LEN})")
    unpacker = msgpack.Unpacker(raw=False, max_buffer_size=MAX_BUFFER_LEN, max_str_len=MAX_STR_LEN)
    unpacker.feed(data)
    try:
        events = [parse_event(message) for message in unpacker]
    except (msgpack.UnpackException, ValueError) as e:
        raise DecodeError(f"failed to decode MessagePack data: {e}") from e
    # iteration stops quietly on a partial trailing message
    if unpacker.tell() != len(data):
        raise DecodeError(f"truncated MessagePack stream: {len(data) - unpacker.tell()} trailing bytes")
    return events
