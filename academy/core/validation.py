"""
Field-level validation evaluated before any write.

Every model lists its rules in a ``validations`` tuple. ``validate`` runs all of
them against a candidate state (a plain mapping of column -> value) and collects
the failures in an :class:`Errors` object; no rule short-circuits another.
"""

import re
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Pattern, Tuple, Type

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

BASE = "base"

BLANK = "can't be blank"
INVALID = "is invalid"
TAKEN = "has already been taken"
UNKNOWN = "is not a known attribute"
UNSAVED = "must be saved first"

COURSE_CODE_FORMAT = re.compile(r"^[A-Za-z]{3}\d{3,}$")
URL_FORMAT = re.compile(r"^https?://\S+$")
EMAIL_FORMAT = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")


def humanize(field: str) -> str:
    """``course_code`` -> ``Course code``; ``lesson_id`` -> ``Lesson``."""
    if field.endswith("_id"):
        field = field[:-3]
    return field.replace("_", " ").capitalize()


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


class Errors:
    """Field-scoped error messages, kept in the order they were added."""

    def __init__(self) -> None:
        self._messages: Dict[str, List[str]] = {}

    def add(self, field: str, message: str) -> None:
        self._messages.setdefault(field, []).append(message)

    def __getitem__(self, field: str) -> List[str]:
        return list(self._messages.get(field, []))

    def __contains__(self, field: object) -> bool:
        return field in self._messages

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        for field, messages in self._messages.items():
            for message in messages:
                yield field, message

    def __len__(self) -> int:
        return sum(len(messages) for messages in self._messages.values())

    def __bool__(self) -> bool:
        return bool(self._messages)

    def __repr__(self) -> str:
        return f"Errors({self._messages!r})"

    @property
    def full_messages(self) -> List[str]:
        return [
            message if field == BASE else f"{humanize(field)} {message}"
            for field, message in self
        ]

    def to_dict(self) -> Dict[str, List[str]]:
        return {field: list(messages) for field, messages in self._messages.items()}


class Rule:
    """A single check over one or more fields of a candidate state."""

    fields: Tuple[str, ...] = ()

    async def check(
        self,
        db: AsyncSession,
        model: Type[Any],
        state: Mapping[str, Any],
        errors: Errors,
        record_id: Optional[int] = None,
    ) -> None:
        raise NotImplementedError


class Presence(Rule):
    def __init__(self, field: str) -> None:
        self.fields = (field,)

    async def check(self, db, model, state, errors, record_id=None) -> None:
        field = self.fields[0]
        if is_blank(state.get(field)):
            errors.add(field, BLANK)


def presence(*fields: str) -> Tuple[Presence, ...]:
    return tuple(Presence(field) for field in fields)


class Format(Rule):
    """Regex check; only applied when a value is present."""

    def __init__(self, field: str, pattern: Pattern[str], message: str = INVALID) -> None:
        self.fields = (field,)
        self.pattern = pattern
        self.message = message

    async def check(self, db, model, state, errors, record_id=None) -> None:
        field = self.fields[0]
        value = state.get(field)
        if is_blank(value):
            return
        if not isinstance(value, str) or not self.pattern.match(value):
            errors.add(field, self.message)


class Uniqueness(Rule):
    """
    No other row may share ``field`` (within ``scope`` columns, if given).

    A NULL value is never considered taken, matching the storage-level
    UniqueConstraint every Uniqueness rule is paired with.
    """

    def __init__(self, field: str, scope: Iterable[str] = ()) -> None:
        self.field = field
        self.scope = tuple(scope)
        self.fields = (field,) + self.scope

    async def check(self, db, model, state, errors, record_id=None) -> None:
        value = state.get(self.field)
        if value is None:
            return
        stmt = select(func.count()).select_from(model).where(getattr(model, self.field) == value)
        for column in self.scope:
            scope_value = state.get(column)
            attr = getattr(model, column)
            stmt = stmt.where(attr.is_(None) if scope_value is None else attr == scope_value)
        if record_id is not None:
            stmt = stmt.where(model.id != record_id)
        taken = (await db.execute(stmt)).scalar_one()
        if taken:
            errors.add(self.field, TAKEN)


class NotBefore(Rule):
    """``later`` must not precede ``earlier`` when both are set."""

    def __init__(self, later: str, earlier: str, message: str) -> None:
        self.later = later
        self.earlier = earlier
        self.message = message
        self.fields = (later, earlier)

    async def check(self, db, model, state, errors, record_id=None) -> None:
        later = state.get(self.later)
        earlier = state.get(self.earlier)
        if later is None or earlier is None:
            return
        if later < earlier:
            errors.add(self.later, self.message)


async def validate(
    db: AsyncSession,
    model: Type[Any],
    state: Mapping[str, Any],
    errors: Optional[Errors] = None,
    record_id: Optional[int] = None,
    skip: Iterable[str] = (),
    only: Optional[Type[Rule]] = None,
) -> Errors:
    """
    Run every rule declared on ``model`` against ``state``.

    Rules touching a field listed in ``skip`` (values that could not be coerced)
    are not evaluated. ``only`` restricts the run to one rule class.
    """
    if errors is None:
        errors = Errors()
    skipped = set(skip)
    for rule in getattr(model, "validations", ()):
        if only is not None and not isinstance(rule, only):
            continue
        if skipped.intersection(rule.fields):
            continue
        await rule.check(db, model, state, errors, record_id)
    return errors
