import logging
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple, Type, Union

from fastapi import status
from sqlalchemy import exc as sa_exc
from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import RelationshipDirection

from academy.core.exceptions import IntegrityError, NotFoundError, ServiceError, ValidationError
from academy.core.integrity import apply_deletion, plan_deletion
from academy.core.models import ENTITY_TYPES, CourseInstructor, User
from academy.core.ordering import ordered
from academy.core.relations import RELATIONS, Relation
from academy.core.results import Result
from academy.core.schemas import FIELD_SCHEMAS, coerce_fields
from academy.core.validation import BASE, UNSAVED, Errors, Uniqueness, validate

logger = logging.getLogger(__name__)

EntityType = Union[str, Type[Any]]

CONFLICT_MESSAGE = "Record conflicts with an existing record"


def resolve_entity_type(entity_type: EntityType) -> Type[Any]:
    """Accept a model class or its registry name ("course", "assignment_grade", ...)."""
    if isinstance(entity_type, str):
        model = ENTITY_TYPES.get(entity_type)
    else:
        model = entity_type if entity_type in FIELD_SCHEMAS else None
    if model is None:
        raise ServiceError(f"Unknown entity type: {entity_type!r}", status.HTTP_400_BAD_REQUEST)
    return model


def _relation(model: Type[Any], name: str) -> Relation:
    relation = RELATIONS.get(model, {}).get(name)
    if relation is None:
        raise ServiceError(f"{model.__name__} has no relation {name!r}", status.HTTP_400_BAD_REQUEST)
    return relation


def _column_values(record: Any) -> Dict[str, Any]:
    return {column.key: getattr(record, column.key) for column in sa_inspect(type(record)).column_attrs}


def _resolve_associations(
    model: Type[Any], fields: Mapping[str, Any], errors: Errors
) -> Tuple[Dict[str, Any], Set[str]]:
    """Translate ``term=<Term>``-style keys into their foreign-key columns."""
    relationships = sa_inspect(model).relationships
    resolved: Dict[str, Any] = {}
    unsaved: Set[str] = set()
    for key, value in fields.items():
        if key not in relationships or relationships[key].direction is not RelationshipDirection.MANYTOONE:
            resolved[key] = value
            continue
        column = next(iter(relationships[key].local_columns)).key
        if value is None:
            resolved[column] = None
        elif getattr(value, "id", None) is None:
            errors.add(column, UNSAVED)
            unsaved.add(column)
        else:
            resolved[column] = value.id
    return resolved, unsaved


def _prepare(model: Type[Any], fields: Optional[Mapping[str, Any]], errors: Errors) -> Tuple[Dict[str, Any], Set[str]]:
    resolved, unsaved = _resolve_associations(model, fields or {}, errors)
    state, invalid = coerce_fields(model, resolved, errors)
    return state, invalid | unsaved


async def _reload(db: AsyncSession, entity: Any) -> Any:
    model = type(entity)
    record = None
    if getattr(entity, "id", None) is not None:
        record = await db.get(model, entity.id)
    if record is None:
        raise NotFoundError(f"{model.__name__} {getattr(entity, 'id', None)} not found")
    return record


async def _commit(
    db: AsyncSession, model: Type[Any], record: Any, state: Mapping[str, Any], record_id: Optional[int] = None
) -> Result:
    db.add(record)
    try:
        await db.commit()
    except sa_exc.IntegrityError:
        # A concurrent writer won the race for a unique value.
        await db.rollback()
        logger.warning("Storage constraint rejected %s %s", model.__name__, record_id or "(new)")
        errors = await validate(db, model, state, record_id=record_id, only=Uniqueness)
        if not errors:
            errors.add(BASE, CONFLICT_MESSAGE)
        return Result.failure(ValidationError(errors))
    await db.refresh(record)
    return Result.success(record)


async def create(db: AsyncSession, entity_type: EntityType, fields: Optional[Mapping[str, Any]] = None) -> Result:
    """Validate ``fields`` and insert a new record. Nothing is written unless every rule passes."""
    model = resolve_entity_type(entity_type)
    errors = Errors()
    state, invalid = _prepare(model, fields, errors)
    await validate(db, model, state, errors, skip=invalid)
    if errors:
        logger.info("Rejected new %s: %s", model.__name__, errors.full_messages)
        return Result.failure(ValidationError(errors))

    result = await _commit(db, model, model(**state), state)
    if result.ok:
        logger.info("Created %s %s", model.__name__, result.value.id)
    return result


async def update(db: AsyncSession, entity: Any, fields: Mapping[str, Any]) -> Result:
    """Apply ``fields`` to an existing record; the record is unchanged if validation fails."""
    try:
        record = await _reload(db, entity)
    except NotFoundError as exc:
        return Result.failure(exc)

    model = type(record)
    record_id = record.id
    errors = Errors()
    changes, invalid = _prepare(model, fields, errors)
    state = {**_column_values(record), **changes}
    await validate(db, model, state, errors, record_id=record_id, skip=invalid)
    if errors:
        logger.info("Rejected update of %s %s: %s", model.__name__, record_id, errors.full_messages)
        return Result.failure(ValidationError(errors))

    for key, value in changes.items():
        setattr(record, key, value)
    result = await _commit(db, model, record, state, record_id=record_id)
    if result.ok:
        logger.info("Updated %s %s: %s", model.__name__, record_id, sorted(changes))
    return result


async def delete(db: AsyncSession, entity: Any) -> Result:
    """
    Remove a record together with its cascading dependents.

    Refused with an IntegrityError while restricting dependents exist; in that
    case nothing is modified.
    """
    try:
        record = await _reload(db, entity)
    except NotFoundError as exc:
        return Result.failure(exc)

    model_name = type(record).__name__
    record_id = record.id
    plan = await plan_deletion(db, record)
    if not plan.allowed:
        logger.info("Refused to delete %s %s: %s", model_name, record_id, plan.errors.full_messages)
        return Result.failure(IntegrityError(plan.errors))

    try:
        await apply_deletion(db, plan)
        await db.commit()
    except sa_exc.SQLAlchemyError as exc:
        await db.rollback()
        logger.warning("Deletion of %s %s rolled back: %s", model_name, record_id, exc)
        return Result.failure(IntegrityError.from_message(f"Cannot delete record: {exc.__class__.__name__}"))

    logger.info("Deleted %s %s (%d rows)", model_name, record_id, len(plan.deletes))
    return Result.success(None)


async def get(db: AsyncSession, entity_type: EntityType, entity_id: int) -> Any:
    model = resolve_entity_type(entity_type)
    record = await db.get(model, entity_id)
    if record is None:
        raise NotFoundError(f"{model.__name__} {entity_id} not found")
    return record


async def find_unique(db: AsyncSession, entity_type: EntityType, **criteria: Any) -> Optional[Any]:
    """First record (by identifier) whose columns equal ``criteria``, or None."""
    model = resolve_entity_type(entity_type)
    columns = {column.key for column in sa_inspect(model).column_attrs}
    unknown = sorted(set(criteria) - columns)
    if unknown:
        raise ServiceError(
            f"{model.__name__} has no column(s) {', '.join(unknown)}", status.HTTP_400_BAD_REQUEST
        )
    result = await db.execute(select(model).filter_by(**criteria).order_by(model.id).limit(1))
    return result.scalars().first()


async def exists(db: AsyncSession, entity_type: EntityType, **criteria: Any) -> bool:
    return await find_unique(db, entity_type, **criteria) is not None


async def find_or_create(db: AsyncSession, entity_type: EntityType, fields: Mapping[str, Any]) -> Result:
    """Return the record matching ``fields`` exactly, creating it when there is none."""
    model = resolve_entity_type(entity_type)
    errors = Errors()
    state, _ = _prepare(model, fields, errors)
    if errors:
        return Result.failure(ValidationError(errors))
    found = await find_unique(db, model, **state)
    if found is not None:
        return Result.success(found)
    return await create(db, model, state)


async def fetch_related(db: AsyncSession, entity: Any, relation_name: str) -> List[Any]:
    """Materialize a to-many relation in its declared order."""
    record = await _reload(db, entity)
    relation = _relation(type(record), relation_name)
    if not relation.many:
        raise ServiceError(
            f"{relation_name!r} is a single-record relation; use fetch_one", status.HTTP_400_BAD_REQUEST
        )
    result = await db.execute(relation.query(record))
    return ordered(result.scalars().all(), relation.order)


async def count_related(db: AsyncSession, entity: Any, relation_name: str) -> int:
    return len(await fetch_related(db, entity, relation_name))


async def fetch_one(db: AsyncSession, entity: Any, relation_name: str) -> Optional[Any]:
    """Resolve a belongs-to relation; None when the foreign key is unset or dangling."""
    record = await _reload(db, entity)
    relation = _relation(type(record), relation_name)
    if relation.many:
        raise ServiceError(
            f"{relation_name!r} is a collection; use fetch_related", status.HTTP_400_BAD_REQUEST
        )
    result = await db.execute(relation.query(record))
    return result.scalars().first()


async def attach(db: AsyncSession, entity: Any, relation_name: str, target: Any, **extra: Any) -> Result:
    """
    Add ``target`` to a to-many relation of ``entity``.

    Direct relations repoint the target's foreign key; relations through a join
    entity create the join record (``extra`` goes to it, e.g. ``primary=True``).
    """
    try:
        record = await _reload(db, entity)
    except NotFoundError as exc:
        return Result.failure(exc)
    relation = _relation(type(record), relation_name)
    if relation.foreign_key is None and relation.through is None:
        raise ServiceError(
            f"{type(record).__name__}.{relation_name} is derived and cannot be attached to",
            status.HTTP_400_BAD_REQUEST,
        )
    if not relation.many or not isinstance(target, relation.target):
        raise ServiceError(
            f"Cannot attach {type(target).__name__} to {type(record).__name__}.{relation_name}",
            status.HTTP_400_BAD_REQUEST,
        )
    if getattr(target, "id", None) is None:
        errors = Errors()
        errors.add(BASE, f"{relation.target.__name__} {UNSAVED}")
        return Result.failure(ValidationError(errors))

    if relation.through is not None:
        join_model, owner_key, target_key = relation.through
        result = await create(db, join_model, {owner_key: record.id, target_key: target.id, **extra})
    else:
        result = await update(db, target, {relation.foreign_key: record.id, **extra})
    if result.ok:
        logger.info(
            "Attached %s %s to %s %s.%s",
            type(target).__name__, target.id, type(record).__name__, record.id, relation_name,
        )
    return result


async def primary_instructor(db: AsyncSession, course: Any) -> Optional[User]:
    """Instructor of the lowest-id CourseInstructor flagged primary, if any."""
    record = await _reload(db, course)
    result = await db.execute(
        select(User)
        .join(CourseInstructor, CourseInstructor.instructor_id == User.id)
        .where(CourseInstructor.course_id == record.id, CourseInstructor.primary.is_(True))
        .order_by(CourseInstructor.id)
        .limit(1)
    )
    return result.scalars().first()
