"""Multi-source combinators: concatenation, k-way merge and deduplication."""
from __future__ import annotations

import logging
import operator
from typing import Any, Callable, Iterable, List, Optional

from .combinators import Wrapper
from .iterator import END_OF_DATA, LazyIterator

logger = logging.getLogger(__name__)

CompareFunc = Callable[[Any, Any], int]
EqualsFunc = Callable[[Any, Any], bool]


def natural_compare(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def close_all(iterators: Iterable[LazyIterator]) -> None:
    """Close every iterator, then raise the first close error, if any.

    Later errors are logged and dropped.
    """
    first_error: Optional[Exception] = None
    for it in iterators:
        try:
            it.close()
        except Exception as exc:
            if first_error is None:
                first_error = exc
            else:
                logger.warning("close.error suppressed=%s: %s", type(exc).__name__, exc)
    if first_error is not None:
        raise first_error


class Concat(LazyIterator):
    """All items of the first source, then all items of the second, and so on.

    A source is closed as soon as it is exhausted, before the next one is
    pulled.
    """

    def __init__(self, *sources: LazyIterator):
        super().__init__()
        self._sources: List[LazyIterator] = list(sources)
        self._index = 0

    def _compute_next(self) -> Any:
        while self._index < len(self._sources):
            source = self._sources[self._index]
            if source.has_next():
                return source.next()
            source.close()
            self._index += 1
            logger.debug("concat.advance source=%d of=%d", self._index, len(self._sources))
        return END_OF_DATA

    def _release(self) -> None:
        close_all(self._sources)


class Merge(LazyIterator):
    """Online k-way merge of individually sorted sources.

    Each advance peeks at the head of every source that still has data and
    consumes only the smallest one; ties go to the lowest-indexed source.
    """

    def __init__(self, compare: Optional[CompareFunc], *sources: LazyIterator):
        super().__init__()
        self._compare: CompareFunc = compare or natural_compare
        self._sources: List[LazyIterator] = list(sources)

    def _select_min(self) -> Optional[LazyIterator]:
        selected: Optional[LazyIterator] = None
        current: Any = None
        for source in self._sources:
            if not source.has_next():
                continue
            candidate = source.peek()
            if selected is None or self._compare(current, candidate) > 0:
                selected, current = source, candidate
        return selected

    def _compute_next(self) -> Any:
        selected = self._select_min()
        if selected is None:
            return END_OF_DATA
        return selected.next()

    def _release(self) -> None:
        close_all(self._sources)


_NOTHING = object()


class Dedup(Wrapper):
    """Suppress items equal to the item emitted just before them."""

    def __init__(self, upstream: LazyIterator, equals: EqualsFunc = operator.eq):
        super().__init__(upstream)
        self._equals = equals
        self._previous: Any = _NOTHING

    def _compute_next(self) -> Any:
        while self._upstream.has_next():
            item = self._upstream.next()
            if self._previous is _NOTHING or not self._equals(self._previous, item):
                self._previous = item
                return item
        return END_OF_DATA


def concat(*iterators: LazyIterator) -> Concat:
    return Concat(*iterators)


def merge(*iterators: LazyIterator, compare: Optional[CompareFunc] = None) -> Merge:
    return Merge(compare, *iterators)
