"""
Entity mapping for the repository facades.

An entity is any class whose fields correspond to the columns of one table:
a dataclass, a pydantic model, a SQLAlchemy declarative model, or a plain class
with annotated attributes. No shared base class is required.

Conventions:
- Table name: ``__tablename__`` if present, otherwise the class name.
  ``__schema__`` optionally qualifies it.
- Key: the field flagged with ``mapped(key=True)``, else the field named by
  ``__key__``, else the field named ``id`` (case-insensitive).
- Per-field options are read from dataclass ``field(metadata=...)`` or
  pydantic ``Field(json_schema_extra=...)``; build them with ``mapped()``.

Example:
    ```python
    @dataclass
    class Dog:
        __tablename__ = "Dogs"

        id: Optional[int] = None
        name: str = field(default="", metadata=mapped(column="Name"))
        age: Optional[int] = field(default=None, metadata=mapped(read_only=True))
    ```
"""

import dataclasses
import types
import typing
import uuid
from datetime import date, datetime, time
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, Mapping, NamedTuple, Optional, Tuple, Type

from pydantic import BaseModel as PydanticModel
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    LargeBinary,
    MetaData,
    Numeric,
    String,
    Table,
    Time,
    Uuid,
)
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.engine import Row
from sqlalchemy.types import NullType, TypeEngine

from simplerepo.errors.exceptions import MappingError

# Result types mapped from the first column of a row rather than by field name
SCALAR_TYPES = (
    bool,
    int,
    float,
    str,
    bytes,
    Decimal,
    datetime,
    date,
    time,
    uuid.UUID,
)

_SQL_TYPES: Dict[type, Type[TypeEngine]] = {
    bool: Boolean,
    int: Integer,
    float: Float,
    str: String,
    bytes: LargeBinary,
    Decimal: Numeric,
    datetime: DateTime,
    date: Date,
    time: Time,
    uuid.UUID: Uuid,
}

OPTION_KEYS = (
    "column",
    "key",
    "read_only",
    "ignore_insert",
    "ignore_update",
    "not_mapped",
)


def mapped(
    column: Optional[str] = None,
    *,
    key: bool = False,
    read_only: bool = False,
    ignore_insert: bool = False,
    ignore_update: bool = False,
    not_mapped: bool = False,
) -> Dict[str, Any]:
    """
    Build the per-field mapping options dictionary.

    Args:
        column: Column name when it differs from the attribute name
        key: Mark the field as the primary key
        read_only: Never written by insert or update (computed columns)
        ignore_insert: Left out of INSERT statements
        ignore_update: Left out of UPDATE statements
        not_mapped: Field has no column at all

    Returns:
        Options suitable for ``dataclasses.field(metadata=...)`` or
        ``pydantic.Field(json_schema_extra=...)``
    """
    options: Dict[str, Any] = {}
    if column:
        options["column"] = column
    for name, flag in (
        ("key", key),
        ("read_only", read_only),
        ("ignore_insert", ignore_insert),
        ("ignore_update", ignore_update),
        ("not_mapped", not_mapped),
    ):
        if flag:
            options[name] = True
    return options


class FieldMap(NamedTuple):
    """One entity attribute and the column it maps to."""

    attribute: str
    column: str
    annotation: Any = None
    init_name: Optional[str] = None
    key: bool = False
    insert: bool = True
    update: bool = True

    @property
    def argument(self) -> str:
        """Keyword used when constructing the entity."""
        return self.init_name or self.attribute


class EntityMap(NamedTuple):
    """
    Table metadata for one entity type.

    Attributes:
        entity_type: The mapped class
        table: SQLAlchemy Table used to build statements
        key: The key field
        fields: All mapped fields, key included
    """

    entity_type: type
    table: Table
    key: FieldMap
    fields: Tuple[FieldMap, ...]

    @property
    def key_column(self) -> Column:
        return self.table.c[self.key.column]

    def key_value(self, entity: Any) -> Any:
        return getattr(entity, self.key.attribute, None)

    def insert_values(self, entity: Any) -> Dict[str, Any]:
        """Column values for INSERT; a key left as None is generated by the database."""
        values = {}
        for f in self.fields:
            if f.key:
                value = getattr(entity, f.attribute, None)
                if value is not None:
                    values[f.column] = value
            elif f.insert:
                values[f.column] = getattr(entity, f.attribute, None)
        return values

    def update_values(self, entity: Any) -> Dict[str, Any]:
        """Column values for UPDATE; the key is matched on, never written."""
        return {
            f.column: getattr(entity, f.attribute, None)
            for f in self.fields
            if not f.key and f.update
        }


def _unwrap_optional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is typing.Union or (
        hasattr(types, "UnionType") and origin is types.UnionType
    ):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _sql_type(annotation: Any) -> TypeEngine:
    annotation = _unwrap_optional(annotation)
    if isinstance(annotation, type):
        for python_type, sql_type in _SQL_TYPES.items():
            if issubclass(annotation, python_type):
                return sql_type()
    return NullType()


def _options_from(source: Any) -> Dict[str, Any]:
    if isinstance(source, Mapping):
        return {k: source[k] for k in OPTION_KEYS if k in source}
    return {}


def _is_pydantic(entity_type: type) -> bool:
    return issubclass(entity_type, PydanticModel)


def _is_sqlalchemy_model(entity_type: type) -> bool:
    return isinstance(getattr(entity_type, "__table__", None), Table) and hasattr(
        entity_type, "__mapper__"
    )


def _raw_fields(entity_type: type):
    """Yield (attribute, annotation, options, init_name) for each candidate field."""
    if dataclasses.is_dataclass(entity_type):
        hints = typing.get_type_hints(entity_type)
        for f in dataclasses.fields(entity_type):
            if not f.init:
                continue
            yield f.name, hints.get(f.name, f.type), _options_from(f.metadata), None
    elif _is_pydantic(entity_type):
        for name, info in entity_type.model_fields.items():
            yield name, info.annotation, _options_from(info.json_schema_extra), info.alias
    else:
        hints = typing.get_type_hints(entity_type)
        for name, annotation in hints.items():
            if name.startswith("_") or typing.get_origin(annotation) is typing.ClassVar:
                continue
            yield name, annotation, {}, None


@lru_cache(maxsize=None)
def entity_fields(entity_type: type) -> Tuple[FieldMap, ...]:
    """
    Discover the mapped fields of an entity type.

    Key detection is not applied here; use ``entity_map`` for table metadata.
    Works for any class that can receive query results, including result
    classes that have no table of their own.
    """
    if not isinstance(entity_type, type):
        raise MappingError(
            message=f"Expected a class, got {entity_type!r}", entity_type=None
        )

    if _is_sqlalchemy_model(entity_type):
        return tuple(
            FieldMap(
                attribute=attr.key,
                column=attr.columns[0].name,
                key=attr.columns[0].primary_key,
            )
            for attr in sa_inspect(entity_type).column_attrs
        )

    fields = []
    for name, annotation, options, init_name in _raw_fields(entity_type):
        if options.get("not_mapped"):
            continue
        read_only = bool(options.get("read_only"))
        fields.append(
            FieldMap(
                attribute=name,
                column=options.get("column") or name,
                annotation=annotation,
                init_name=init_name,
                key=bool(options.get("key")),
                insert=not (read_only or options.get("ignore_insert")),
                update=not (read_only or options.get("ignore_update")),
            )
        )

    if not fields:
        raise MappingError(
            message=f"{entity_type.__name__} has no mappable fields",
            entity_type=entity_type,
        )
    return tuple(fields)


def _find_key(entity_type: type, fields: Tuple[FieldMap, ...]) -> FieldMap:
    flagged = [f for f in fields if f.key]
    if len(flagged) > 1:
        raise MappingError(
            message=f"{entity_type.__name__} declares more than one key field",
            entity_type=entity_type,
        )
    if flagged:
        return flagged[0]

    declared = getattr(entity_type, "__key__", None)
    if declared:
        for f in fields:
            if f.attribute == declared:
                return f
        raise MappingError(
            message=f"{entity_type.__name__}.__key__ names unknown field '{declared}'",
            entity_type=entity_type,
        )

    for f in fields:
        if f.attribute.lower() == "id":
            return f

    raise MappingError(
        message=(
            f"{entity_type.__name__} has no key field; add an 'id' field, "
            "set __key__, or use mapped(key=True)"
        ),
        entity_type=entity_type,
    )


@lru_cache(maxsize=None)
def entity_map(entity_type: type) -> EntityMap:
    """
    Build (once per type) the table metadata used to generate CRUD statements.

    Raises:
        MappingError: if the type has no fields or no identifiable key
    """
    fields = entity_fields(entity_type)
    key = _find_key(entity_type, fields)
    fields = tuple(f._replace(key=f is key) for f in fields)
    key = next(f for f in fields if f.key)

    if _is_sqlalchemy_model(entity_type):
        return EntityMap(entity_type, entity_type.__table__, key, fields)

    columns = []
    for f in fields:
        sql_type = _sql_type(f.annotation)
        if f.key:
            columns.append(
                Column(
                    f.column,
                    sql_type,
                    primary_key=True,
                    autoincrement=isinstance(sql_type, Integer),
                )
            )
        else:
            columns.append(Column(f.column, sql_type))

    table = Table(
        getattr(entity_type, "__tablename__", None) or entity_type.__name__,
        MetaData(),
        *columns,
        schema=getattr(entity_type, "__schema__", None),
    )
    return EntityMap(entity_type, table, key, fields)


def coerce(result_type: Any, value: Any) -> Any:
    """Convert a single database value to ``result_type`` where that is meaningful."""
    if value is None or result_type in (None, Any, object):
        return value
    result_type = _unwrap_optional(result_type)
    if not isinstance(result_type, type) or isinstance(value, result_type):
        if result_type is int and isinstance(value, bool):
            return int(value)
        return value
    if result_type in (bool, str) and isinstance(value, (str, bytes)):
        # No faithful conversion: "false" is truthy and str(b"x") is "b'x'"
        return value
    if result_type is uuid.UUID:
        return uuid.UUID(str(value))
    if result_type in (datetime, date, time) and isinstance(value, str):
        return result_type.fromisoformat(value)
    if result_type in (bool, int, float, str, bytes, Decimal):
        return result_type(value)
    return value


def _lookup(row: Mapping[str, Any], column: str, folded: Dict[str, str]) -> Tuple[bool, Any]:
    if column in row:
        return True, row[column]
    actual = folded.get(column.lower())
    if actual is not None:
        return True, row[actual]
    return False, None


def map_row(result_type: Any, row: Row) -> Any:
    """
    Map one result row to ``result_type``.

    Scalars take the first column, ``dict`` and ``tuple`` take the whole row,
    entity types are constructed from the columns matching their fields
    (case-insensitive, unknown columns dropped).
    """
    if result_type in (None, Any, object, Row):
        return row
    target = _unwrap_optional(result_type)
    if target is dict:
        return dict(row._mapping)
    if target is tuple:
        return tuple(row)
    if isinstance(target, type) and issubclass(target, SCALAR_TYPES):
        return coerce(target, row[0])

    mapping = row._mapping
    folded = {str(name).lower(): name for name in mapping.keys()}
    kwargs = {}
    for f in entity_fields(target):
        found, value = _lookup(mapping, f.column, folded)
        if found:
            kwargs[f.argument] = value
    return target(**kwargs)
