"""
jsondrip - an incremental JSON parser exposing partially parsed values while
characters are still arriving.
"""

__version__ = "0.1.0"

from .core import JSONStreamParser, parse, to_number
from .cursor import Cursor
from .errors import (
    InvalidEscapeSequence,
    InvalidUpdate,
    JSONDripError,
    ParseError,
    UnexpectedEndOfInput,
    UnexpectedToken,
)
from .main import jsondrip
from .node import PartialNode, Updater, resolve, wrap
from .source import EOF, CharSource

__all__ = [
    "CharSource",
    "Cursor",
    "EOF",
    "InvalidEscapeSequence",
    "InvalidUpdate",
    "JSONDripError",
    "JSONStreamParser",
    "ParseError",
    "PartialNode",
    "UnexpectedEndOfInput",
    "UnexpectedToken",
    "Updater",
    "jsondrip",
    "parse",
    "resolve",
    "to_number",
    "wrap",
]
