"""Predicate and ordering evaluation shared by the store backends."""

from __future__ import annotations

import operator
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from confide.store.base import Document, FieldFilter, OrderBy, Query

_MISSING = object()

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda left, right: left in right,
    "array-contains": lambda left, right: isinstance(left, list | tuple) and right in left,
}


def matches(data: Mapping[str, Any], filters: Iterable[FieldFilter]) -> bool:
    """Return True when ``data`` satisfies every filter.

    A missing field never matches, whatever the operator.
    """
    for item in filters:
        value = data.get(item.field, _MISSING)
        if value is _MISSING or value is None:
            return False
        try:
            if not _COMPARATORS[item.op](value, item.value):
                return False
        except TypeError:
            return False
    return True


def _sort_key(field: str) -> Callable[[Document], tuple[int, Any]]:
    def key(document: Document) -> tuple[int, Any]:
        value = document.data.get(field)
        # Missing values sort before everything else in ascending order.
        return (0, 0) if value is None else (1, value)

    return key


def sort_documents(documents: list[Document], order: Iterable[OrderBy]) -> list[Document]:
    """Sort by several keys with independent directions."""
    result = list(documents)
    # Stable sorts applied from the least to the most significant key.
    for spec in reversed(tuple(order)):
        result.sort(key=_sort_key(spec.field), reverse=spec.descending)
    return result


def apply_query(documents: Iterable[Document], query: Query) -> list[Document]:
    """Filter, order and limit ``documents`` according to ``query``."""
    selected = [doc for doc in documents if matches(doc.data, query.filters)]
    selected = sort_documents(selected, query.order)
    if query.limit is not None:
        selected = selected[: query.limit]
    return selected
