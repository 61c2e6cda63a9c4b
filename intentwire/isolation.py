"""Per-message fault isolation.

Every inbound message is handled inside its own ``IsolationScope``. An
exception raised by handler code, either during the synchronous dispatch
pass or later from an asyncio task spawned while the scope was current,
is logged with the offending message and answered with one generic error
reply. The process keeps serving other messages.

The current scope travels in a ``ContextVar``. ``asyncio`` copies the
context into every task it creates, so tasks spawned from inside a scope
(and tasks those tasks spawn) stay attributed to it. A task factory on
the running loop extends this to tasks handlers create directly with
``asyncio.create_task``.

Key classes:
    IsolationScope: Fault boundary for one message.
    FaultIsolator: Creates a fresh scope per message and runs the pass.

Key functions:
    spawn: Schedule an awaitable under the current scope.
    current_scope: The scope of the message being handled, if any.
    install_task_factory: Attribute directly created tasks to the scope.
"""

import asyncio
import inspect
import weakref
from contextvars import ContextVar
from typing import Any, Awaitable, Callable, List, Optional, Set

import structlog

from .exceptions import HandlerFault
from .messages import GENERIC_ERROR
from .route import Route

logger = structlog.get_logger("intentwire.dispatch")

_current_scope: ContextVar[Optional["IsolationScope"]] = ContextVar(
    "intentwire_isolation_scope", default=None
)


def log_task_exception(task: asyncio.Future):
    """Log exceptions from fire-and-forget tasks instead of silently swallowing them."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc:
        logger.error("background_task_failed", error=str(exc), exc_type=type(exc).__name__)


def _discard(awaitable: Awaitable) -> None:
    """Drop an awaitable that cannot be scheduled (no running loop)."""
    if inspect.iscoroutine(awaitable):
        awaitable.close()
    logger.warning("spawn_without_event_loop", awaitable=repr(awaitable))


def current_scope() -> Optional["IsolationScope"]:
    return _current_scope.get()


class IsolationScope:
    """Fault boundary for a single inbound message.

    Args:
        route: Route the message arrived on; receives the error reply.
        message: The raw inbound text, for logging.
        error_key: Phrasebook key sent when the first fault is caught.

    Attributes:
        faults: Every HandlerFault caught in this scope, in order.
        outcome: Whatever the wrapped dispatch pass returned.
    """

    def __init__(self, route: Route, message: str, error_key: str = GENERIC_ERROR):
        self.route = route
        self.message = message
        self.error_key = error_key
        self.faults: List[HandlerFault] = []
        self.outcome: Any = None
        self._tasks: Set[asyncio.Future] = set()
        self._adopted: "weakref.WeakSet[asyncio.Future]" = weakref.WeakSet()
        self._reported = False

    @property
    def faulted(self) -> bool:
        return bool(self.faults)

    @property
    def pending(self) -> int:
        """Number of tracked tasks still running."""
        return len(self._tasks)

    def run(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Call fn with this scope current. Exceptions are caught, not raised."""
        token = _current_scope.set(self)
        try:
            return fn(*args)
        except Exception as exc:
            self.fault(exc, phase="sync")
            return None
        finally:
            _current_scope.reset(token)

    def track(self, result: Any) -> Optional[asyncio.Future]:
        """Spawn result if it is awaitable; plain values are ignored."""
        if inspect.isawaitable(result):
            return self.spawn(result)
        return None

    def spawn(self, awaitable: Awaitable) -> Optional[asyncio.Future]:
        """Schedule an awaitable whose failure is reported by this scope."""
        return self._schedule(awaitable, owner=self)

    def adopt(self, task: asyncio.Future) -> asyncio.Future:
        """Attribute an already created task to this scope.

        Adopting the same task twice is a no-op, so a task seen by both
        ``spawn`` and the loop's task factory is reported once.
        """
        if task in self._adopted:
            return task
        self._adopted.add(task)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(self._task_done)
        return task

    def _schedule(
        self, awaitable: Awaitable, owner: Optional["IsolationScope"]
    ) -> Optional[asyncio.Future]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _discard(awaitable)
            return None
        install_task_factory(loop)
        token = _current_scope.set(owner)
        try:
            task = asyncio.ensure_future(awaitable)
        finally:
            _current_scope.reset(token)
        if owner is not None:
            return owner.adopt(task)
        # Waited on, but its failure is not a fault of this scope
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _task_done(self, task: asyncio.Future) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.fault(exc, phase="async")

    def fault(self, exc: BaseException, phase: str = "sync") -> HandlerFault:
        """Record and log a handler exception; reply once per scope."""
        fault = HandlerFault(
            str(exc) or type(exc).__name__,
            phase=phase,
            conversation_id=self.route.conversation_id,
            text=self.message,
            error_type=type(exc).__name__,
        )
        fault.__cause__ = exc
        self.faults.append(fault)

        logger.error(
            "message_handling_error",
            message=self.message,
            conversation=self.route.conversation_id,
            phase=phase,
            error=str(exc),
            error_type=type(exc).__name__,
            exc_info=exc,
        )

        if not self._reported:
            self._reported = True
            self._send_error_reply()
        return fault

    def _send_error_reply(self) -> None:
        # A failing error reply is logged, never re-reported
        token = _current_scope.set(None)
        try:
            result = self.route.send(self.error_key)
        except Exception as e:
            logger.error("error_reply_failed", error=str(e), error_type=type(e).__name__)
            return
        finally:
            _current_scope.reset(token)
        if inspect.isawaitable(result):
            task = self._schedule(result, owner=None)
            if task is not None:
                task.add_done_callback(log_task_exception)

    async def wait(self) -> None:
        """Wait until every task tracked by this scope has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            await asyncio.sleep(0)


class FaultIsolator:
    """Runs each message's dispatch pass inside a fresh IsolationScope."""

    def __init__(self, error_key: str = GENERIC_ERROR):
        self.error_key = error_key

    def run(
        self, route: Route, message: str, fn: Callable[..., Any], *args: Any
    ) -> IsolationScope:
        try:
            install_task_factory(asyncio.get_running_loop())
        except RuntimeError:
            pass  # synchronous caller, nothing can be scheduled anyway
        scope = IsolationScope(route, message, self.error_key)
        scope.outcome = scope.run(fn, *args)
        return scope


def install_task_factory(loop: asyncio.AbstractEventLoop) -> None:
    """Make tasks created inside a scope belong to it.

    Handlers that call ``asyncio.create_task`` or ``loop.create_task``
    directly, instead of ``spawn``, are attributed to the current scope
    through the loop's task factory. An existing factory is wrapped, and
    installing twice on the same loop is a no-op.

    Callbacks scheduled with ``loop.call_soon``/``call_later`` are not
    tasks; their exceptions go to the loop's exception handler.
    """
    previous = loop.get_task_factory()
    if getattr(previous, "_intentwire_scoped", False):
        return

    def factory(loop, coro, **kwargs):
        if previous is None:
            task = asyncio.Task(coro, loop=loop, **kwargs)
        else:
            task = previous(loop, coro, **kwargs)
        scope = current_scope()
        if scope is not None:
            scope.adopt(task)
        return task

    factory._intentwire_scoped = True
    loop.set_task_factory(factory)


def spawn(awaitable: Awaitable) -> Optional[asyncio.Future]:
    """Schedule background work from a handler.

    Inside a message's isolation scope the task is attributed to it;
    elsewhere failures are only logged.
    """
    scope = current_scope()
    if scope is not None:
        return scope.spawn(awaitable)
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        _discard(awaitable)
        return None
    task = asyncio.ensure_future(awaitable)
    task.add_done_callback(log_task_exception)
    return task
