from __future__ import annotations

import ijson


class JSONDripError(Exception):
    """Base exception for everything raised by jsondrip."""


class ParseError(JSONDripError, ijson.JSONError):
    """The document is malformed at ``position``."""

    def __init__(self, message: str, position: int | None = None) -> None:
        super().__init__(message)
        self.position = position


class UnexpectedEndOfInput(ParseError, ijson.IncompleteJSONError):
    def __init__(self, position: int | None = None) -> None:
        super().__init__(f"Unexpected end of JSON input at position {position}.", position)


class UnexpectedToken(ParseError):
    def __init__(self, token: str, position: int | None = None, expected: str | None = None) -> None:
        message = f"Unexpected token {token!r} in JSON at position {position}"
        if expected is not None:
            message += f", expected {expected!r}"
        super().__init__(message + ".", position)
        self.token = token
        self.expected = expected


class InvalidEscapeSequence(ParseError):
    def __init__(self, sequence: str, position: int | None = None) -> None:
        super().__init__(
            f"Invalid escape sequence \\{sequence} in JSON at position {position}.",
            position,
        )
        self.sequence = sequence


class InvalidUpdate(JSONDripError, RuntimeError):
    """A builder misused the update protocol of a partial node."""
