from .iterator import (
    END_OF_DATA,
    IllegalStateError,
    IteratorError,
    LazyIterator,
    NoSuchElementError,
    State,
    new_iterator,
)
from .combinators import (
    Chunk,
    ErrorPolicy,
    Filter,
    Limit,
    Skip,
    Transform,
    filter_non_none,
    paginate,
)
from .multi import Concat, Dedup, Merge, close_all, concat, merge, natural_compare
from .adapters import (
    CsvIterator,
    CursorIterator,
    IterableIterator,
    QueryIterator,
    from_csv,
    from_cursor,
    from_iterable,
    from_query,
)

__all__ = [
    "END_OF_DATA",
    "IllegalStateError",
    "IteratorError",
    "LazyIterator",
    "NoSuchElementError",
    "State",
    "new_iterator",
    "Chunk",
    "ErrorPolicy",
    "Filter",
    "Limit",
    "Skip",
    "Transform",
    "filter_non_none",
    "paginate",
    "Concat",
    "Dedup",
    "Merge",
    "close_all",
    "concat",
    "merge",
    "natural_compare",
    "CsvIterator",
    "CursorIterator",
    "IterableIterator",
    "QueryIterator",
    "from_csv",
    "from_cursor",
    "from_iterable",
    "from_query",
]
