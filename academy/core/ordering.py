"""
Sort orders applied when a collection is materialized.

Keys are pure functions of a record. ``ordered`` uses a stable sort, so records
with equal keys keep the order they were read in (identifier order).
"""

from typing import Any, Callable, Iterable, List, Tuple

SortKey = Callable[[Any], Any]


def _nulls_first(value: Any) -> Tuple[bool, Any]:
    return (value is not None, value)


def by_identifier(record: Any) -> int:
    return record.id


def assignment_order(assignment: Any) -> Tuple:
    """due_at ascending, then active_at ascending; missing dates sort first."""
    return (_nulls_first(assignment.due_at), _nulls_first(assignment.active_at))


# Identifiers are assigned monotonically, so this is creation order.
child_lesson_order = by_identifier


def student_order(user: Any) -> Tuple:
    return (_nulls_first(user.last_name), _nulls_first(user.first_name))


def ordered(records: Iterable[Any], key: SortKey = by_identifier) -> List[Any]:
    return sorted(records, key=key)
