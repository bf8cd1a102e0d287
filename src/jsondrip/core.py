from __future__ import annotations

import asyncio
import logging
import re
import string

from .cursor import Cursor
from .errors import (
    InvalidEscapeSequence,
    JSONDripError,
    UnexpectedEndOfInput,
    UnexpectedToken,
)
from .node import PartialNode, Updater, wrap
from .node import resolve as resolve_node
from .source import CharSource

logger = logging.getLogger(__name__)

DIGITS = frozenset(string.digits)
HEX_DIGITS = frozenset(string.hexdigits)
IDENTIFIER_CHARS = frozenset(string.ascii_letters + string.digits + "_")

ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}
UNICODE_ESCAPE_WIDTHS = {"u": 4, "U": 8}

_NUMBER_PREFIX = re.compile(r"-?\d*(?:\.\d*)?")


def to_number(text: str) -> int | float:
    """Best-effort numeric value of the number text read so far.

    The longest ``-?digits.digits`` prefix is converted, so ``"-12."`` gives
    ``-12.0`` and ``"1.2.3"`` gives ``1.2``. Text without any digit yet
    (``""`` or ``"-"``) gives ``0``.
    """
    prefix = _NUMBER_PREFIX.match(text).group()
    if not DIGITS.intersection(prefix):
        return 0
    if "." in prefix:
        return float(prefix)
    return int(prefix)


def _hex_value(digits: str) -> int | None:
    if not digits or not HEX_DIGITS.issuperset(digits):
        return None
    return int(digits, 16)


class JSONStreamParser:
    """Incremental JSON parser exposing the partially built value tree.

    Parsing of the root value starts as soon as the parser is created, so it
    must be constructed while an event loop is running:

        source = CharSource()
        parser = JSONStreamParser(source)
        source.push('{"title": "hi')
        await asyncio.sleep(0)
        parser.root["title"].snapshot  # 'hi'
        source.push('"}')
        source.close()
        await parser.resolve()  # {'title': 'hi'}
    """

    def __init__(self, source: CharSource) -> None:
        self.source = source
        self._cursor = Cursor(source)
        self._root_task = asyncio.get_running_loop().create_task(self.parse_value())
        self._root_task.add_done_callback(self._watch_root)

    def _watch_root(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        if task.exception() is not None:
            self._log_failure(task)
        else:
            task.result()._future.add_done_callback(self._log_failure)

    def _log_failure(self, future: asyncio.Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if isinstance(exc, JSONDripError):
            logger.debug("JSON stream failed at position %s: %s", self.position, exc)

    @property
    def position(self) -> int:
        return self._cursor.position

    @property
    def root(self) -> PartialNode | None:
        """The root node, or None until its first character has been seen."""
        task = self._root_task
        if task.done() and not task.cancelled() and task.exception() is None:
            return task.result()
        return None

    async def root_node(self) -> PartialNode:
        return await asyncio.shield(self._root_task)

    def materialize(self):
        """Plain value of everything parsed so far (None before the root)."""
        root = self.root
        return None if root is None else root.materialize()

    async def resolve(self):
        """Wait for the whole document and return it as plain Python values."""
        return await resolve_node(await self.root_node())

    async def parse_value(self, skip_whitespace: bool = True) -> PartialNode:
        """Return a node for the value starting at the cursor.

        Only the first character is looked at here; the returned node keeps
        parsing the rest of the value in the background.
        """
        if skip_whitespace:
            await self._cursor.skip_whitespace()
        char = await self._cursor.peek_non_eof()

        if char == "{":
            return self.parse_object()
        if char == "[":
            return self.parse_array()
        if char == '"':
            return self.parse_string()
        if char == "t":
            return self.parse_boolean(True)
        if char == "f":
            return self.parse_boolean(False)
        if char == "n":
            return self.parse_null()
        if char == "-" or char in DIGITS:
            return self.parse_number()
        raise UnexpectedToken(char, self._cursor.position)

    def parse_object(self) -> PartialNode:
        cursor = self._cursor

        async def body(update: Updater) -> None:
            await cursor.expect("{")
            while True:
                await cursor.skip_whitespace()
                char = await cursor.peek_non_eof()
                if char == "}":
                    break

                key_node = self.parse_string() if char == '"' else self.parse_identifier()
                key = await key_node._future
                await cursor.skip_whitespace()
                await cursor.expect(":")

                child = await self.parse_value()

                def attach(members: dict) -> None:
                    members[key] = child

                update.mutate_in_place(attach)
                await child._future

                await cursor.skip_whitespace()
                if await cursor.peek_non_eof() == "}":
                    break
                await cursor.expect(",")
            await cursor.expect("}")

        return wrap({}, body)

    def parse_array(self) -> PartialNode:
        cursor = self._cursor

        async def body(update: Updater) -> None:
            await cursor.expect("[")
            while True:
                await cursor.skip_whitespace()
                if await cursor.peek_non_eof() == "]":
                    break

                child = await self.parse_value(skip_whitespace=False)
                update.mutate_in_place(lambda items: items.append(child))
                await child._future

                await cursor.skip_whitespace()
                if await cursor.peek_non_eof() == "]":
                    break
                await cursor.expect(",")
            await cursor.expect("]")

        return wrap([], body)

    def parse_number(self) -> PartialNode:
        cursor = self._cursor

        async def body(update: Updater) -> None:
            text = ""
            if await cursor.peek() == "-":
                text = await cursor.next()
            while True:
                char = await cursor.peek()
                if char is None or (char not in DIGITS and char != "."):
                    break
                text += await cursor.next()
                update.replace(to_number(text))

            if not DIGITS.intersection(text):
                if char is None:
                    raise UnexpectedEndOfInput(cursor.position)
                raise UnexpectedToken(char, cursor.position, expected="digit")

        return wrap(0, body)

    def parse_string(self) -> PartialNode:
        cursor = self._cursor

        async def body(update: Updater) -> None:
            await cursor.expect('"')
            text = ""
            while True:
                char = await cursor.next_non_eof()
                if char == '"':
                    return
                if char == "\\":
                    char = await self._read_escape()
                text += char
                update.replace(text)

        return wrap("", body)

    async def _read_escape(self) -> str:
        cursor = self._cursor
        start = cursor.position - 1
        kind = await cursor.next_non_eof()
        if kind in ESCAPES:
            return ESCAPES[kind]

        width = UNICODE_ESCAPE_WIDTHS.get(kind)
        if width is None:
            raise InvalidEscapeSequence(kind, start)
        digits = await cursor.next_non_eof(width)
        code = _hex_value(digits)
        if code is None or code > 0x10FFFF:
            raise InvalidEscapeSequence(kind + digits, start)

        # A high surrogate followed by an escaped low surrogate is one code point.
        if 0xD800 <= code <= 0xDBFF:
            follow = await cursor.peek(6)
            if follow is not None and follow.startswith("\\u"):
                low = _hex_value(follow[2:])
                if low is not None and 0xDC00 <= low <= 0xDFFF:
                    await cursor.next(6)
                    code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
        return chr(code)

    def parse_identifier(self) -> PartialNode:
        """Bare object key: ASCII letters, digits and underscore."""
        cursor = self._cursor

        async def body(update: Updater) -> None:
            text = ""
            while True:
                char = await cursor.peek_non_eof()
                if char not in IDENTIFIER_CHARS:
                    break
                text += await cursor.next()
                update.replace(text)
            if not text:
                raise UnexpectedToken(char, cursor.position, expected="object key")

        return wrap("", body)

    def parse_boolean(self, expected: bool) -> PartialNode:
        literal = "true" if expected else "false"

        async def body(update: Updater) -> None:
            await self._cursor.expect(literal)

        return wrap(expected, body)

    def parse_null(self) -> PartialNode:
        async def body(update: Updater) -> None:
            await self._cursor.expect("null")

        return wrap(None, body)


async def parse(text: str | bytes):
    """Parse a complete document and return it as plain Python values."""
    return await JSONStreamParser(CharSource.from_text(text)).resolve()
