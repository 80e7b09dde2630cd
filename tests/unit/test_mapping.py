"""
Unit tests for entity mapping.

Covers:
- Table name, key and column discovery for dataclasses, pydantic models,
  SQLAlchemy models and annotated classes
- Field options (column rename, read-only, ignore on insert/update, not mapped)
- Insert/update value extraction
- Row mapping to entities, scalars, dicts and tuples
- MappingError for unmappable types
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest
from sqlalchemy import Integer, String

from simplerepo.db.mapping import coerce, entity_fields, entity_map, map_row, mapped
from simplerepo.errors import MappingError
from tests.entities import Car, Dog, DogSummary, Owner, Toy


class FakeRow(tuple):
    """Minimal stand-in for sqlalchemy.engine.Row."""

    def __new__(cls, **values):
        row = super().__new__(cls, values.values())
        row._values = values
        return row

    @property
    def _mapping(self):
        return self._values


@dataclass
class Cat:
    ID: Optional[int] = None
    name: str = ""
    created: Optional[datetime] = field(default=None, metadata=mapped(read_only=True))
    notes: str = field(default="", metadata=mapped(ignore_update=True))
    tag: str = field(default="", metadata=mapped(ignore_insert=True))


class Annotated:
    __tablename__ = "annotated"
    __schema__ = "pets"

    id: int
    label: str

    def __init__(self, id=None, label=""):
        self.id = id
        self.label = label


@dataclass
class NoKey:
    name: str = ""


@dataclass
class TwoKeys:
    a: int = field(default=0, metadata=mapped(key=True))
    b: int = field(default=0, metadata=mapped(key=True))


@dataclass
class BadKey:
    __key__ = "missing"

    name: str = ""


def test_dataclass_table_and_key():
    emap = entity_map(Dog)
    assert emap.table.name == "Dogs"
    assert emap.key.attribute == "id"
    assert emap.key_column.primary_key
    assert isinstance(emap.key_column.type, Integer)
    assert emap.key_column.autoincrement is True
    assert [c.name for c in emap.table.columns] == ["id", "Name", "weight", "age"]


def test_table_name_defaults_to_class_name():
    assert entity_map(Cat).table.name == "Cat"


def test_key_found_case_insensitively():
    assert entity_map(Cat).key.attribute == "ID"


def test_explicit_key_attribute():
    emap = entity_map(Car)
    assert emap.key.attribute == "registration"
    assert isinstance(emap.key_column.type, String)
    assert emap.key_column.autoincrement is False


def test_pydantic_key_flag_and_not_mapped():
    emap = entity_map(Owner)
    assert emap.table.name == "owners"
    assert emap.key.attribute == "owner_id"
    assert "nickname" not in [f.attribute for f in emap.fields]


def test_sqlalchemy_model_uses_declared_table():
    emap = entity_map(Toy)
    assert emap.table is Toy.__table__
    assert emap.key.column == "id"
    label = next(f for f in emap.fields if f.attribute == "label")
    assert label.column == "label_text"


def test_annotated_class_with_schema():
    emap = entity_map(Annotated)
    assert emap.table.name == "annotated"
    assert emap.table.schema == "pets"
    assert [f.attribute for f in emap.fields] == ["id", "label"]


def test_missing_key_raises():
    with pytest.raises(MappingError) as exc:
        entity_map(NoKey)
    assert exc.value.code == "MAPPING_ERROR"
    assert exc.value.details["entity_type"] == "NoKey"


def test_two_keys_raise():
    with pytest.raises(MappingError):
        entity_map(TwoKeys)


def test_unknown_declared_key_raises():
    with pytest.raises(MappingError):
        entity_map(BadKey)


def test_non_class_raises():
    with pytest.raises(MappingError):
        entity_fields("Dogs")


def test_keyless_type_still_has_fields():
    assert [f.attribute for f in entity_fields(NoKey)] == ["name"]


def test_mapped_options_dict():
    assert mapped() == {}
    assert mapped("Col", read_only=True) == {"column": "Col", "read_only": True}


def test_insert_values_skip_missing_key_and_read_only():
    emap = entity_map(Cat)
    values = emap.insert_values(Cat(name="Tom", notes="n", tag="t"))
    assert values == {"name": "Tom", "notes": "n"}


def test_insert_values_keep_explicit_key():
    values = entity_map(Car).insert_values(Car(registration="AB12", make="VW", year=2001))
    assert values == {"registration": "AB12", "make": "VW", "year": 2001}


def test_update_values_exclude_key():
    emap = entity_map(Cat)
    values = emap.update_values(Cat(ID=3, name="Tom", notes="n", tag="t"))
    assert values == {"name": "Tom", "tag": "t"}


def test_insert_and_update_use_column_names():
    dog = Dog(id=1, name="Rex", weight=10.0)
    assert entity_map(Dog).update_values(dog) == {"Name": "Rex", "weight": 10.0, "age": None}


def test_entity_does_not_change_when_values_extracted():
    dog = Dog(id=None, name="Rex")
    entity_map(Dog).insert_values(dog)
    assert dog == Dog(id=None, name="Rex")


def test_map_row_to_dataclass_case_insensitive():
    row = FakeRow(ID=1, NAME="Rex", Weight=12.5, extra="ignored")
    assert map_row(Dog, row) == Dog(id=1, name="Rex", weight=12.5)


def test_map_row_to_pydantic():
    row = FakeRow(owner_id=4, full_name="Ann", active=1)
    owner = map_row(Owner, row)
    assert owner == Owner(owner_id=4, full_name="Ann", active=True)


def test_map_row_to_keyless_result_class():
    assert map_row(DogSummary, FakeRow(name="Rex", total=2)) == DogSummary("Rex", 2)


def test_map_row_to_sqlalchemy_model():
    toy = map_row(Toy, FakeRow(id=1, label_text="ball"))
    assert (toy.id, toy.label) == (1, "ball")


@pytest.mark.parametrize(
    "result_type,row,expected",
    [
        (int, FakeRow(count=3), 3),
        (str, FakeRow(name="Rex", age=2), "Rex"),
        (float, FakeRow(total=2), 2.0),
        (dict, FakeRow(a=1, b=2), {"a": 1, "b": 2}),
        (tuple, FakeRow(a=1, b=2), (1, 2)),
    ],
)
def test_map_row_non_entity_types(result_type, row, expected):
    assert map_row(result_type, row) == expected


def test_map_row_without_type_returns_row():
    row = FakeRow(a=1)
    assert map_row(None, row) is row


@pytest.mark.parametrize(
    "result_type,value,expected",
    [
        (int, "5", 5),
        (int, True, 1),
        (bool, 0, False),
        (str, 12, "12"),
        (Decimal, "1.50", Decimal("1.50")),
        (Optional[int], "7", 7),
        (date, "2024-02-01", date(2024, 2, 1)),
        (datetime, "2024-02-01T10:30:00", datetime(2024, 2, 1, 10, 30)),
        (uuid.UUID, "12345678123456781234567812345678", uuid.UUID(int=0x12345678123456781234567812345678)),
        (bool, "false", "false"),
        (str, b"raw", b"raw"),
        (None, "as-is", "as-is"),
        (int, None, None),
    ],
)
def test_coerce(result_type, value, expected):
    assert coerce(result_type, value) == expected
