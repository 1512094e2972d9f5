"""A forward-only, single-pass iterator whose elements are computed on demand.

The producer supplies a ``compute_next`` callable that either returns the next
element, returns ``END_OF_DATA`` once the stream is exhausted, or raises. The
iterator caches at most one computed element and never calls the producer
ahead of demand.
"""
from __future__ import annotations

import logging
import operator
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class State(Enum):
    """Lifecycle of a LazyIterator"""
    NOT_READY = "not_ready"   # nothing computed, or the last element was handed out
    READY = "ready"           # next element computed and cached
    DONE = "done"             # end of data, or closed
    FAILED = "failed"         # the producer raised


class _EndOfData:
    __slots__ = ()

    def __repr__(self) -> str:
        return "END_OF_DATA"


END_OF_DATA: Any = _EndOfData()

_MISSING = object()


class IteratorError(Exception):
    """Base class for iterator protocol errors."""


class NoSuchElementError(IteratorError, LookupError):
    """Raised by next()/peek() when there is no element to hand out."""


class IllegalStateError(IteratorError, RuntimeError):
    """Raised when an iterator failed without a recorded cause."""


class LazyIterator(Generic[T]):
    """Single-pass iterator driven by a compute/release capability pair.

    Either pass ``compute_next`` (and optionally ``release``) to the
    constructor, or subclass and override ``_compute_next``/``_release``.
    """

    def __init__(
            self,
            compute_next: Optional[Callable[[], Any]] = None,
            release: Optional[Callable[[], None]] = None,
        ):
        self._compute_next_fn = compute_next
        self._release_fn = release

        self._state = State.NOT_READY
        self._next: Any = None
        self._error: Optional[BaseException] = None
        self._traceback = None
        self._closed = False

    # ------------------------------------------------------------------
    # Producer capabilities
    # ------------------------------------------------------------------
    def _compute_next(self) -> Any:
        if self._compute_next_fn is None:
            raise NotImplementedError(
                f"{type(self).__name__} needs a compute_next callable or an _compute_next override"
            )
        return self._compute_next_fn()

    def _release(self) -> None:
        if self._release_fn is not None:
            self._release_fn()

    # ------------------------------------------------------------------
    # Consumer contract
    # ------------------------------------------------------------------
    @property
    def state(self) -> State:
        return self._state

    def has_next(self) -> bool:
        """Return True if another element is available.

        Raises the producer's error if the iterator failed; the same exception
        is raised again on every later call.
        """
        if self._state is State.READY:
            return True
        if self._state is State.DONE:
            return False
        if self._state is State.FAILED:
            if self._error is None:
                raise IllegalStateError(f"{type(self).__name__} is in a failed state")
            # traceback as of the failure, not of every later call
            raise self._error.with_traceback(self._traceback)
        return self._try_to_compute_next()

    def next(self) -> T:
        """Consume and return the next element."""
        if not self.has_next():
            raise NoSuchElementError("no such element")
        item = self._next
        self._next = None
        self._state = State.NOT_READY
        return item

    def peek(self) -> T:
        """Return the next element without consuming it."""
        if not self.has_next():
            raise NoSuchElementError("no such element")
        return self._next

    def close(self) -> None:
        """Terminate the iteration and release the backing resources.

        Safe to call more than once; the release capability runs only on the
        first call and any error it raises is propagated.
        """
        self._state = State.DONE
        self._next = None
        self._error = None
        self._traceback = None
        if self._closed:
            return
        self._closed = True
        logger.debug("iterator.close iterator=%s", type(self).__name__)
        self._release()

    def _try_to_compute_next(self) -> bool:
        # a re-entrant advance from inside the producer sees a failed iterator
        self._state = State.FAILED
        try:
            try:
                item = self._compute_next()
            except StopIteration as exc:
                # would otherwise read as a normal end of iteration in __next__
                raise RuntimeError(f"{type(self).__name__} producer raised StopIteration") from exc
        except Exception as exc:
            self._error = exc
            self._traceback = exc.__traceback__
            logger.debug("iterator.failed iterator=%s error=%s: %s",
                          type(self).__name__, type(exc).__name__, exc)
            raise

        if item is END_OF_DATA:
            self._state = State.DONE
            return False

        self._next = item
        self._state = State.READY
        return True

    # ------------------------------------------------------------------
    # Python protocols
    # ------------------------------------------------------------------
    def __iter__(self) -> "LazyIterator[T]":
        return self

    def __next__(self) -> T:
        if not self.has_next():
            raise StopIteration
        return self.next()

    def __enter__(self) -> "LazyIterator[T]":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} state={self._state.name}>"

    # ------------------------------------------------------------------
    # Fluent pipeline
    # ------------------------------------------------------------------
    def filter(self, pred: Callable[[T], bool]) -> "LazyIterator[T]":
        from .combinators import Filter
        return Filter(self, pred)

    def filter_non_none(self) -> "LazyIterator[T]":
        from .combinators import filter_non_none
        return filter_non_none(self)

    def map(self, fn: Callable[[T], Any], on_error: Any = "fail") -> "LazyIterator[Any]":
        from .combinators import Transform
        return Transform(self, fn, on_error=on_error)

    def skip(self, n: int) -> "LazyIterator[T]":
        from .combinators import Skip
        return Skip(self, n)

    def limit(self, n: int) -> "LazyIterator[T]":
        from .combinators import Limit
        return Limit(self, n)

    take = limit

    def paginate(self, size: int, page: int) -> "LazyIterator[T]":
        from .combinators import paginate
        return paginate(self, size, page)

    def chunk(self, size: int, include_partial: bool = True) -> "LazyIterator[tuple]":
        from .combinators import Chunk
        return Chunk(self, size, include_partial=include_partial)

    def dedup(self, equals: Callable[[T, T], bool] = operator.eq) -> "LazyIterator[T]":
        from .multi import Dedup
        return Dedup(self, equals)

    def concat(self, *others: "LazyIterator[T]") -> "LazyIterator[T]":
        from .multi import Concat
        return Concat(self, *others)

    def merge(self, *others: "LazyIterator[T]",
              compare: Optional[Callable[[T, T], int]] = None) -> "LazyIterator[T]":
        from .multi import Merge
        return Merge(compare, self, *others)

    def reduce(self, fn: Callable[[Any, T], Any], init: Any = _MISSING) -> Any:
        """Fold the remaining elements with ``fn`` and close the iterator."""
        with self:
            if init is _MISSING:
                if not self.has_next():
                    raise TypeError("empty stream with no init")
                acc = self.next()
            else:
                acc = init
            for item in self:
                acc = fn(acc, item)
            return acc


def new_iterator(
        compute_next: Callable[[], Any],
        release: Optional[Callable[[], None]] = None,
    ) -> LazyIterator[Any]:
    """Build an iterator from a producer's compute (and optional release) function."""
    return LazyIterator(compute_next, release)
