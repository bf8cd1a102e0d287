from __future__ import annotations

import asyncio
import codecs

EOF = object()


class _Failure:
    def __init__(self, exc: BaseException) -> None:
        self.exc = exc


class CharSource:
    """Append-only FIFO of characters feeding a parser.

    Chunks can be pushed at any time, including after the consumer started
    reading. ``close()`` marks the end of the stream.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._closed = False
        self._terminal = None

    @classmethod
    def from_text(cls, text: str | bytes) -> CharSource:
        source = cls()
        source.push(text)
        source.close()
        return source

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, chunk: str | bytes | bytearray) -> None:
        if self._closed:
            raise RuntimeError("Cannot push after source is closed.")
        text = (
            self._decoder.decode(bytes(chunk))
            if isinstance(chunk, (bytes, bytearray))
            else chunk
        )
        for char in text:
            self._queue.put_nowait(char)

    def close(self) -> None:
        if self._closed:
            return
        tail = self._decoder.decode(b"", final=True)
        for char in tail:
            self._queue.put_nowait(char)
        self._closed = True
        self._queue.put_nowait(EOF)

    def fail(self, exc: BaseException) -> None:
        if self._closed:
            raise RuntimeError("Cannot push after source is closed.")
        self._closed = True
        self._queue.put_nowait(_Failure(exc))

    async def get(self):
        """Return the next character, or ``EOF`` once the stream has ended."""
        if self._terminal is not None:
            return self._end()
        item = await self._queue.get()
        if item is EOF or isinstance(item, _Failure):
            self._terminal = item
            return self._end()
        return item

    def _end(self):
        if isinstance(self._terminal, _Failure):
            raise self._terminal.exc
        return EOF
