from __future__ import annotations

import asyncio
from itertools import islice
from typing import Any, Awaitable, Callable

from .errors import InvalidUpdate

_CONTAINERS = (list, dict)


class PartialNode:
    """Live view of one JSON value while it is being parsed.

    ``snapshot`` holds the best-known value so far. Containers hold child
    ``PartialNode`` objects, attached as soon as their key or index is known.
    ``completion`` resolves to the final snapshot once the value is fully
    parsed, or fails with the parse error. After that the snapshot is frozen.

    Nodes are only created through ``wrap()``.
    """

    def __init__(self, snapshot) -> None:
        self._snapshot = snapshot
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._task: asyncio.Task | None = None
        self._waiters: list[asyncio.Future] = []

    @property
    def snapshot(self):
        return self._snapshot

    @property
    def completion(self) -> asyncio.Future:
        """Shielded view of the completion future.

        Cancelling it (e.g. from ``asyncio.wait_for``) leaves parsing running.
        """
        return asyncio.shield(self._future)

    @property
    def done(self) -> bool:
        return self._future.done()

    @property
    def failed(self) -> bool:
        return self.exception is not None

    @property
    def exception(self) -> BaseException | None:
        if not self._future.done():
            return None
        if self._future.cancelled():
            return asyncio.CancelledError()
        return self._future.exception()

    @property
    def value(self):
        """Synchronous access to the plain value of a completed node.

        Raises LookupError while the value is still being parsed.
        """
        if not self._future.done():
            raise LookupError(
                "Value not yet resolved. "
                "Use 'await node' in async code, or wait for parsing to complete."
            )
        exc = self.exception
        if exc is not None:
            raise exc
        return self.materialize()

    def materialize(self):
        """Plain value of the current state, partial children included."""
        snapshot = self._snapshot
        if isinstance(snapshot, list):
            return [child.materialize() for child in snapshot]
        if isinstance(snapshot, dict):
            return {key: child.materialize() for key, child in snapshot.items()}
        return snapshot

    def __getitem__(self, key: str | int) -> PartialNode:
        if not isinstance(self._snapshot, _CONTAINERS):
            raise TypeError(
                f"Cannot index a {type(self._snapshot).__name__} node."
            )
        return self._snapshot[key]

    def __await__(self):
        return resolve(self).__await__()

    def __aiter__(self):
        if not isinstance(self._snapshot, _CONTAINERS):
            raise TypeError(
                f"Cannot iterate a {type(self._snapshot).__name__} node."
            )
        return _ChildCursor(self)

    def __repr__(self) -> str:
        if not self._future.done():
            state = "pending"
        elif self.failed:
            state = "failed"
        else:
            state = "done"
        return f"<PartialNode {state} {self.materialize()!r}>"

    async def _run(self, body: Callable[[Updater], Awaitable[Any]]) -> None:
        try:
            await body(Updater(self))
        except asyncio.CancelledError:
            self._future.cancel()
            self._wake_waiters()
            raise
        except Exception as exc:
            if not self._future.done():
                self._future.set_exception(exc)
        else:
            if not self._future.done():
                self._future.set_result(self._snapshot)
        self._wake_waiters()

    def _wake_waiters(self) -> None:
        for waiter in self._waiters:
            if not waiter.done():
                waiter.set_result(None)
        self._waiters.clear()


class Updater:
    """Write handle passed to a builder body, bound to the node it builds."""

    __slots__ = ("_node",)

    def __init__(self, node: PartialNode) -> None:
        self._node = node

    def _check_open(self) -> PartialNode:
        node = self._node
        if node._future.done():
            raise InvalidUpdate("Cannot update a node after it has completed.")
        return node

    def replace(self, data) -> None:
        """Replace a scalar snapshot with ``data`` or ``data(old)``."""
        node = self._check_open()
        if isinstance(node._snapshot, _CONTAINERS):
            raise InvalidUpdate(
                "Container snapshots must be updated with mutate_in_place()."
            )
        new = data(node._snapshot) if callable(data) else data
        if new is None:
            raise InvalidUpdate("Update data cannot be None.")
        node._snapshot = new

    def mutate_in_place(self, fn: Callable[[Any], None]) -> None:
        """Let ``fn`` mutate a container snapshot without replacing it."""
        node = self._check_open()
        if not callable(fn):
            raise InvalidUpdate("mutate_in_place() requires a function.")
        if not isinstance(node._snapshot, _CONTAINERS):
            raise InvalidUpdate("Only container snapshots can be mutated in place.")
        if fn(node._snapshot) is not None:
            raise InvalidUpdate("In-place update functions must return None.")
        node._wake_waiters()


def wrap(initial, body: Callable[[Updater], Awaitable[Any]]) -> PartialNode:
    """Create a node with snapshot ``initial`` and start ``body`` building it."""
    node = PartialNode(initial)
    node._task = asyncio.get_running_loop().create_task(node._run(body))
    return node


class _ChildCursor:
    def __init__(self, node: PartialNode) -> None:
        self.node = node
        self.index = 0
        self._keys: list[str] = []

    def __aiter__(self):
        return self

    def _child_at(self, index: int):
        children = self.node._snapshot
        if isinstance(children, list):
            return children[index]
        # Keys are only ever appended, so fetch just the new ones from the end.
        missing = len(children) - len(self._keys)
        if missing:
            self._keys.extend(reversed(list(islice(reversed(children), missing))))
        return self._keys[index]

    async def __anext__(self):
        while True:
            if self.index < len(self.node._snapshot):
                child = self._child_at(self.index)
                self.index += 1
                return child

            exc = self.node.exception
            if exc is not None:
                raise exc

            if self.node.done:
                raise StopAsyncIteration

            waiter = asyncio.get_running_loop().create_future()
            self.node._waiters.append(waiter)
            await waiter


async def resolve(node: PartialNode):
    """Wait for ``node`` and all its descendants, returning the plain value."""
    value = await asyncio.shield(node._future)
    if isinstance(value, list):
        return [await resolve(child) for child in value]
    if isinstance(value, dict):
        return {key: await resolve(child) for key, child in value.items()}
    return value
