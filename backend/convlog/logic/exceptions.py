"""Typed errors for log conversion.

Every failure during reconstruction is a subclass of ConvertError. Errors
are raised where the inconsistency is detected and propagate unchanged to
the caller of convert_match: a single bad round aborts the whole match,
since later rounds cannot be trusted once the source data is shown to be
inconsistent.
"""

from __future__ import annotations


class ConvertError(Exception):
    """Base exception for log conversion failures.

    Carries the location of the failure (round index, honba, seat) when it
    is known. The reconstructor fills in the location for errors raised by
    lower layers (token and tile decoding) via locate().
    """

    def __init__(
        self,
        detail: str,
        *,
        round_index: int | None = None,
        honba: int | None = None,
        seat: int | None = None,
    ) -> None:
        self.detail = detail
        self.round_index = round_index
        self.honba = honba
        self.seat = seat
        super().__init__(self._render())

    def _render(self) -> str:
        location = []
        if self.round_index is not None:
            location.append(f"round {self.round_index}")
        if self.honba is not None:
            location.append(f"honba {self.honba}")
        if self.seat is not None:
            location.append(f"seat {self.seat}")
        if not location:
            return self.detail
        return f"{self.detail} (at {' '.join(location)})"

    def locate(
        self,
        *,
        round_index: int | None = None,
        honba: int | None = None,
        seat: int | None = None,
    ) -> ConvertError:
        """Fill in missing location fields and return self for re-raising."""
        if self.round_index is None:
            self.round_index = round_index
        if self.honba is None:
            self.honba = honba
        if self.seat is None:
            self.seat = seat
        self.args = (self._render(),)
        return self


class MalformedTokenError(ConvertError):
    """A call token matches none of the positional grammars."""

    def __init__(self, token: str, reason: str = "invalid call token", **location: int | None) -> None:
        self.token = token
        super().__init__(f"{reason}: {token!r}", **location)


class InvalidTileError(MalformedTokenError):
    """A tile value is outside the 37 known identities (plus unknown).

    When the value came from inside a call token, token and offset point at
    the offending substring.
    """

    def __init__(self, value: object, *, token: str | None = None, offset: int | None = None) -> None:
        self.value = value
        self.offset = offset
        if token is None:
            super().__init__(str(value), reason="invalid tile")
        else:
            super().__init__(token, reason=f"invalid tile {value!r} at offset {offset} in call token")


class ExhaustedSequenceError(ConvertError):
    """A draw queue, discard queue or the dora indicator list ran out.

    Attributes:
        sequence: Which sequence was exhausted ("draws", "discards" or
            "dora_indicators").

    """

    def __init__(self, sequence: str, **location: int | None) -> None:
        self.sequence = sequence
        super().__init__(f"insufficient {sequence.replace('_', ' ')}", **location)


class InconsistentRoundError(ConvertError):
    """The source arrays contradict each other in a way no other error names."""
