from __future__ import annotations

import asyncio
import logging

from .core import JSONStreamParser
from .source import CharSource

logger = logging.getLogger(__name__)


def jsondrip(source=None):
    """Create a parser driven by a stream of text or byte chunks.

    Must be called with a running event loop.

    With an async source, starts a background task pumping it, returns the parser:

        parser = jsondrip(llm_stream())
        root = await parser.root_node()
        async for key in root:
            render(key, root[key])

    With a sync source, queues every chunk at once, returns the parser:

        parser = jsondrip(['{"name":', '"Alice"}'])
        await parser.resolve()

    Without a source, returns (parser, feed, finish) for manual feeding:

        parser, feed, finish = jsondrip()
        feed('{"name": "Al')
        feed('ice"}')
        finish()
        await parser.resolve()
    """
    chars = CharSource()
    parser = JSONStreamParser(chars)

    if source is None:
        return parser, chars.push, chars.close

    if hasattr(source, "__aiter__"):

        async def _drive():
            try:
                async for chunk in source:
                    chars.push(chunk)
                chars.close()
            except Exception as exc:
                logger.debug("Chunk source failed: %s", exc)
                chars.fail(exc)

        parser._pump = asyncio.get_running_loop().create_task(_drive())
        return parser

    try:
        for chunk in source:
            chars.push(chunk)
        chars.close()
    except Exception as exc:
        chars.fail(exc)
        raise

    return parser
