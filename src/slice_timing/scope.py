"""Tracking scopes: explicit execution contexts that intercept asyncio resumptions.

A :class:`TrackingScope` tags a dynamic extent with the tracker that owns it.
The scope is carried in a context variable and re-installed around every step
of a scoped awaitable, so each resumption of tracked code on the event loop
passes through :meth:`TrackingScope.run` before the user code runs. Child
tasks created while a scope is current are wrapped by :class:`ScopedTaskFactory`
and therefore intercepted as well.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Generator
from contextvars import ContextVar
from typing import Any, Generic, Protocol, TypeVar, cast

logger = logging.getLogger("slice_timing.scope")

T = TypeVar("T")


class SliceInterceptor(Protocol):
    """Tracker side of the interception protocol."""

    @property
    def is_finished(self) -> bool:  # pragma: no cover - Protocol
        """True once the tracker stopped recording resumptions."""

    def _track_sync_slice(self, owner: object, action: Callable[[], T]) -> T:  # pragma: no cover - Protocol
        """Run ``action`` as a resumption of code owned by ``owner``."""


_current_scope: ContextVar[TrackingScope | None] = ContextVar("slice_timing_scope", default=None)


def current_scope() -> TrackingScope | None:
    """Return the scope of the code that is running right now, if any."""

    return _current_scope.get()


class TrackingScope:
    """Dynamic extent owned by one tracker, linked to its enclosing scope."""

    def __init__(self, tracker: SliceInterceptor, parent: TrackingScope | None = None) -> None:
        self.tracker = tracker
        self.parent = parent

    @classmethod
    def open(cls, tracker: SliceInterceptor) -> TrackingScope:
        """Create a scope nested inside whichever scope is current."""

        return cls(tracker, current_scope())

    @property
    def is_active(self) -> bool:
        """True while any tracker on the scope chain still records resumptions."""

        scope: TrackingScope | None = self
        while scope is not None:
            if not scope.tracker.is_finished:
                return True
            scope = scope.parent
        return False

    def run(self, fn: Callable[..., T], *args: Any) -> T:
        """Run one resumption of code that belongs to this scope.

        Accepts direct calls as well as one- and two-argument callbacks. Every
        tracker from the outermost enclosing scope down to this scope's own
        tracker sees the resumption, each told which tracker owns the code.
        """

        token = _current_scope.set(self)
        try:
            return self._intercept(self.tracker, lambda: fn(*args))
        finally:
            _current_scope.reset(token)

    def wrap(self, factory: Callable[[], Awaitable[T]]) -> ScopedAwaitable[T]:
        """Return an awaitable that runs ``factory()`` with every step intercepted."""

        return ScopedAwaitable(self, factory)

    def _intercept(self, owner: SliceInterceptor, action: Callable[[], T]) -> T:
        def own() -> T:
            return self.tracker._track_sync_slice(owner, action)

        if self.parent is None:
            return own()
        # Enclosing trackers wrap this one, so they close their bursts before it opens its own.
        return self.parent._intercept(owner, own)

    def __repr__(self) -> str:
        return f"TrackingScope(tracker={self.tracker!r}, nested={self.parent is not None})"


class ScopedAwaitable(Generic[T]):
    """Drives an awaitable step by step, each step inside ``scope.run``.

    The first step calls the factory and runs the awaitable up to its first
    suspension, so creating the coroutine and its first burst share a slice.
    Values and exceptions sent in by the event loop are forwarded unchanged.
    """

    def __init__(self, scope: TrackingScope, factory: Callable[[], Awaitable[T]]) -> None:
        self._scope = scope
        self._factory = factory
        self._iterator: Generator[Any, Any, T] | None = None

    def _start(self) -> Any:
        self._iterator = self._factory().__await__()
        return self._iterator.send(None)

    def __await__(self) -> Generator[Any, Any, T]:
        if self._iterator is not None:
            raise RuntimeError("ScopedAwaitable can only be awaited once")

        try:
            signal = self._scope.run(self._start)
        except StopIteration as stop:
            return stop.value

        iterator = cast(Generator[Any, Any, T], self._iterator)
        while True:
            try:
                value = yield signal
            except GeneratorExit:
                iterator.close()
                raise
            except BaseException as exc:
                step: Callable[[Any], Any] = iterator.throw
                arg: Any = exc
            else:
                step = iterator.send
                arg = value
            try:
                signal = self._scope.run(step, arg)
            except StopIteration as stop:
                return stop.value


async def _run_scoped(awaitable: ScopedAwaitable[T]) -> T:
    return await awaitable


class ScopedTaskFactory:
    """Event-loop task factory that keeps child tasks inside their creator's scope.

    Chains to the factory that was installed before it, or to ``asyncio.Task``.
    """

    def __init__(self, inner: Callable[..., asyncio.Future[Any]] | None = None) -> None:
        self._inner = inner

    def __call__(self, loop: asyncio.AbstractEventLoop, coro: Any, **kwargs: Any) -> asyncio.Future[Any]:
        context = kwargs.get("context")
        scope = context.get(_current_scope) if context is not None else _current_scope.get()
        if scope is None or not scope.is_active:
            return self._create(loop, coro, **kwargs)

        original = coro
        task = self._create(loop, _run_scoped(scope.wrap(lambda: original)), **kwargs)
        # A task cancelled before its first step never starts the wrapped coroutine.
        task.add_done_callback(lambda _: original.close())
        return task

    def _create(self, loop: asyncio.AbstractEventLoop, coro: Any, **kwargs: Any) -> asyncio.Future[Any]:
        if self._inner is not None:
            return self._inner(loop, coro, **kwargs)
        return asyncio.Task(coro, loop=loop, **kwargs)


def install_task_factory(loop: asyncio.AbstractEventLoop | None = None) -> ScopedTaskFactory:
    """Install a :class:`ScopedTaskFactory` on ``loop`` unless one is already present."""

    target = loop or asyncio.get_running_loop()
    existing = target.get_task_factory()
    if isinstance(existing, ScopedTaskFactory):
        return existing
    factory = ScopedTaskFactory(existing)
    target.set_task_factory(factory)
    logger.debug("installed scoped task factory loop=%r chained=%s", target, existing is not None)
    return factory
