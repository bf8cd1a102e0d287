from __future__ import annotations

from .errors import UnexpectedEndOfInput, UnexpectedToken
from .source import EOF, CharSource

WHITESPACE = frozenset(" \t\n\r")


class Cursor:
    """Buffered reader over a ``CharSource`` with bounded lookahead.

    Every character ever read is kept in ``_buffer``; ``position`` is the
    index of the next unconsumed one.
    """

    def __init__(self, source: CharSource) -> None:
        self._source = source
        self._buffer: list[str] = []
        self._index = 0
        self._ended = False

    @property
    def position(self) -> int:
        return self._index

    @property
    def ended(self) -> bool:
        return self._ended

    async def _fill(self, n: int) -> bool:
        wanted = self._index + n
        while len(self._buffer) < wanted and not self._ended:
            char = await self._source.get()
            if char is EOF:
                self._ended = True
            else:
                self._buffer.append(char)
        return len(self._buffer) >= wanted

    async def peek(self, n: int = 1) -> str | None:
        """Return the next ``n`` characters without consuming them.

        Returns ``None`` if the stream ends before ``n`` characters arrive.
        """
        if not await self._fill(n):
            return None
        return "".join(self._buffer[self._index : self._index + n])

    async def next(self, n: int = 1) -> str | None:
        chunk = await self.peek(n)
        if chunk is not None:
            self._index += n
        return chunk

    async def peek_non_eof(self, n: int = 1) -> str:
        chunk = await self.peek(n)
        if chunk is None:
            raise UnexpectedEndOfInput(len(self._buffer))
        return chunk

    async def next_non_eof(self, n: int = 1) -> str:
        chunk = await self.next(n)
        if chunk is None:
            raise UnexpectedEndOfInput(len(self._buffer))
        return chunk

    async def skip_whitespace(self) -> None:
        while await self.peek_non_eof() in WHITESPACE:
            self._index += 1

    async def expect(self, literal: str) -> str:
        start = self._index
        chunk = await self.next_non_eof(len(literal))
        if chunk != literal:
            raise UnexpectedToken(chunk, start, expected=literal)
        return chunk
