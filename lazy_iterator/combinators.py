"""Single-source combinators: each wraps one upstream iterator and owns it."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Union

from .iterator import END_OF_DATA, LazyIterator

logger = logging.getLogger(__name__)


class ErrorPolicy(Enum):
    """What a Transform does when its function raises"""
    FAIL = "fail"           # the transform iterator fails for good
    PER_ITEM = "per_item"   # next() raises for that element, iteration goes on


class Wrapper(LazyIterator):
    """Base for combinators over a single upstream iterator."""

    def __init__(self, upstream: LazyIterator):
        super().__init__()
        self._upstream = upstream

    def _release(self) -> None:
        self._upstream.close()


class Filter(Wrapper):
    def __init__(self, upstream: LazyIterator, predicate: Callable[[Any], bool]):
        super().__init__(upstream)
        self._predicate = predicate

    def _compute_next(self) -> Any:
        while self._upstream.has_next():
            item = self._upstream.next()
            if self._predicate(item):
                return item
        return END_OF_DATA


def filter_non_none(upstream: LazyIterator) -> Filter:
    """Drop every ``None`` item."""
    return Filter(upstream, lambda item: item is not None)


class _TransformFailure:
    __slots__ = ("error",)

    def __init__(self, error: Exception):
        self.error = error


class Transform(Wrapper):
    """Apply ``fn`` to each upstream item.

    With ``ErrorPolicy.FAIL`` an exception from ``fn`` becomes the terminal
    error of this iterator. With ``ErrorPolicy.PER_ITEM`` the element still
    counts as available; ``next()`` consumes it and raises the exception, and
    the following elements are delivered normally. The upstream iterator is
    never affected by a failing ``fn``.
    """

    def __init__(
            self,
            upstream: LazyIterator,
            fn: Callable[[Any], Any],
            on_error: Union[ErrorPolicy, str] = ErrorPolicy.FAIL,
        ):
        super().__init__(upstream)
        self._fn = fn
        self._policy = ErrorPolicy(on_error)

    def _compute_next(self) -> Any:
        if not self._upstream.has_next():
            return END_OF_DATA
        item = self._upstream.next()
        if self._policy is ErrorPolicy.FAIL:
            return self._fn(item)
        try:
            try:
                return self._fn(item)
            except StopIteration as exc:
                # raised later from next(), it would end a for loop silently
                raise RuntimeError("transform function raised StopIteration") from exc
        except Exception as exc:
            logger.debug("transform.item_error error=%s: %s", type(exc).__name__, exc)
            return _TransformFailure(exc)

    def next(self) -> Any:
        item = super().next()
        if isinstance(item, _TransformFailure):
            raise item.error
        return item

    def peek(self) -> Any:
        item = super().peek()
        if isinstance(item, _TransformFailure):
            raise item.error
        return item


class Skip(Wrapper):
    """Discard the first ``n`` upstream items, then pass through."""

    def __init__(self, upstream: LazyIterator, n: int):
        if n < 0:
            raise ValueError(f"skip count must be >= 0, got {n}")
        super().__init__(upstream)
        self._remaining = n

    def _compute_next(self) -> Any:
        while self._remaining > 0:
            if not self._upstream.has_next():
                return END_OF_DATA
            self._upstream.next()
            self._remaining -= 1

        if not self._upstream.has_next():
            return END_OF_DATA
        return self._upstream.next()


class Limit(Wrapper):
    """Serve at most ``n`` upstream items."""

    def __init__(self, upstream: LazyIterator, n: int):
        if n < 0:
            raise ValueError(f"limit must be >= 0, got {n}")
        super().__init__(upstream)
        self._limit = n
        self._served = 0

    def _compute_next(self) -> Any:
        if self._served >= self._limit:
            return END_OF_DATA
        if not self._upstream.has_next():
            return END_OF_DATA
        item = self._upstream.next()
        self._served += 1
        return item


class Chunk(Wrapper):
    """Group consecutive upstream items into tuples of ``size``."""

    def __init__(self, upstream: LazyIterator, size: int, include_partial: bool = True):
        if size < 1:
            raise ValueError(f"chunk size must be >= 1, got {size}")
        super().__init__(upstream)
        self._size = size
        self._include_partial = include_partial

    def _compute_next(self) -> Any:
        buf = []
        while len(buf) < self._size and self._upstream.has_next():
            buf.append(self._upstream.next())
        if len(buf) == self._size or (buf and self._include_partial):
            return tuple(buf)
        return END_OF_DATA


def paginate(upstream: LazyIterator, size: int, page: int) -> Limit:
    """Serve page ``page`` (1-based) of ``size`` items."""
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if size < 0:
        raise ValueError(f"page size must be >= 0, got {size}")
    return Limit(Skip(upstream, (page - 1) * size), size)
