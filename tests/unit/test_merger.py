"""Test the field merger precedence rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

import pytest

from record_updater import (
    InvalidRecordError,
    MergeReport,
    build_schema,
    merge,
)
from record_updater.core.enums import CopyMode, FallbackReason, FieldOutcome
from record_updater.schema.tags import patch_field


class Status(str, Enum):
    ACTIVE = "active"
    BANNED = "banned"


@dataclass
class Profile:
    name: str = ""
    age: int = 0
    score: float = 0.0
    balance: Decimal = Decimal("0")
    status: Status = Status.ACTIVE
    tags: list[str] = field(default_factory=list)
    nickname: Optional[str] = None


@dataclass
class LegacyProfile:
    name: str = ""
    age: str = ""  # Wrong type for Profile.age
    nickname: Optional[str] = None


@dataclass
class Account:
    name: str = ""
    password_hash: str = patch_field(exclude=True, default="")
    _version: int = 0


@dataclass
class WireNamed:
    userName: str = ""


@dataclass
class Holder:
    user_name: str = "held"


@pytest.fixture
def schema():
    return build_schema(Profile)


class TestPrecedence:
    def test_incoming_value_wins(self, schema):
        result = merge(schema, {"name": "Bob", "age": 25}, Profile(name="Ann", age=30))
        assert result.name == "Bob"
        assert result.age == 25

    def test_absent_key_keeps_existing(self, schema):
        result = merge(schema, {"name": "Bob"}, Profile(age=30, tags=["x"]))
        assert result.age == 30
        assert result.tags == ["x"]

    def test_null_equals_absent(self, schema):
        result = merge(schema, {"nickname": None, "age": None}, Profile(nickname="bo", age=4))
        assert result.nickname == "bo"
        assert result.age == 4

    def test_unconvertible_value_keeps_existing(self, schema):
        result = merge(schema, {"age": "25", "tags": "a@x"}, Profile(age=0, tags=["old"]))
        assert result.age == 0
        assert result.tags == ["old"]

    def test_numeric_widening_applies(self, schema):
        result = merge(schema, {"score": 3, "balance": 0.5}, Profile())
        assert result.score == 3.0
        assert isinstance(result.score, float)
        assert result.balance == Decimal("0.5")

    def test_enum_lookup_applies(self, schema):
        result = merge(schema, {"status": "banned"}, Profile())
        assert result.status is Status.BANNED

    def test_unknown_keys_ignored(self, schema):
        result = merge(schema, {"name": "Bob", "invalid": True}, Profile())
        assert result == Profile(name="Bob")

    def test_result_is_new_instance(self, schema):
        existing = Profile(name="Ann")
        result = merge(schema, {"age": 3}, existing)
        assert result is not existing
        assert existing == Profile(name="Ann")

    def test_values_not_mutated(self, schema):
        values = {"name": "Bob", "junk": 1}
        merge(schema, values, Profile())
        assert values == {"name": "Bob", "junk": 1}

    def test_reference_copy_shares_values(self, schema):
        tags = ["a"]
        result = merge(schema, {"tags": tags}, Profile())
        assert result.tags is tags

    def test_deep_copy_mode(self, schema):
        tags = ["a"]
        existing = Profile(tags=["keep"])
        result = merge(schema, {"tags": tags}, existing, copy_mode=CopyMode.DEEP)
        assert result.tags == ["a"]
        assert result.tags is not tags

        kept = merge(schema, {}, existing, copy_mode=CopyMode.DEEP)
        assert kept.tags == ["keep"]
        assert kept.tags is not existing.tags

    def test_mapping_values_accepted(self, schema):
        from types import MappingProxyType

        result = merge(schema, MappingProxyType({"name": "Bob"}), Profile())
        assert result.name == "Bob"


class TestForeignSource:
    def test_compatible_fields_copied(self, schema):
        result = merge(schema, {}, LegacyProfile(name="Ann", age="30", nickname="an"))
        assert result.name == "Ann"
        assert result.nickname == "an"

    def test_incompatible_field_zeroed(self, schema):
        result = merge(schema, {}, LegacyProfile(age="30"))
        assert result.age == 0

    def test_missing_field_zeroed(self, schema):
        result = merge(schema, {}, LegacyProfile())
        assert result.tags == []
        assert result.status is Status.ACTIVE

    def test_external_name_lookup_on_foreign_source(self):
        schema = build_schema(WireNamed)
        result = merge(schema, {}, Holder())
        assert result.userName == "held"

    def test_strict_source_type_rejects_foreign(self, schema):
        with pytest.raises(InvalidRecordError, match="LegacyProfile"):
            merge(schema, {}, LegacyProfile(), strict_source_type=True)


class TestInvalidArguments:
    @pytest.mark.parametrize("source", [None, {"name": "Bob"}, Profile, 5])
    def test_source_must_be_record_instance(self, schema, source):
        with pytest.raises(InvalidRecordError):
            merge(schema, {"name": "Bob"}, source)

    def test_values_must_be_mapping(self, schema):
        with pytest.raises(InvalidRecordError, match="mapping"):
            merge(schema, [("name", "Bob")], Profile())


class TestReport:
    def test_outcomes_and_reasons(self, schema):
        report = MergeReport()
        merge(
            schema,
            {"name": "Bob", "age": "25", "nickname": None, "nmae": "typo"},
            LegacyProfile(),
            report=report,
        )
        by_name = {f.external_name: f for f in report.fields}
        assert by_name["name"].outcome == FieldOutcome.APPLIED
        assert by_name["age"].outcome == FieldOutcome.ZEROED
        assert by_name["age"].reason == FallbackReason.UNCONVERTIBLE
        assert by_name["nickname"].outcome == FieldOutcome.KEPT_EXISTING
        assert by_name["nickname"].reason == FallbackReason.NULL
        assert by_name["tags"].reason == FallbackReason.ABSENT
        assert by_name["tags"].outcome == FieldOutcome.ZEROED
        assert report.unknown_keys == ["nmae"]
        assert report.record_type == "Profile"

    def test_one_entry_per_field_in_schema_order(self, schema):
        report = MergeReport()
        merge(schema, {}, Profile(), report=report)
        assert [f.external_name for f in report.fields] == schema.external_names()


class TestOverflow:
    def test_int_too_large_for_float_keeps_existing(self, schema):
        result = merge(schema, {"score": 10**400}, Profile(score=1.5))
        assert result.score == 1.5

    def test_int_too_large_for_float_reported(self, schema):
        report = MergeReport()
        merge(schema, {"score": 10**400}, Profile(), report=report)
        (score,) = [f for f in report.fields if f.external_name == "score"]
        assert score.outcome == FieldOutcome.KEPT_EXISTING
        assert score.reason == FallbackReason.UNCONVERTIBLE


class TestNonPatchableAttributes:
    def test_schema_lists_carried_attributes(self):
        schema = build_schema(Account)
        assert schema.external_names() == ["name"]
        assert schema.carried == ("password_hash", "_version")

    def test_excluded_and_private_survive_patch(self):
        schema = build_schema(Account)
        existing = Account(name="a", password_hash="s3cret", _version=7)
        result = merge(schema, {"name": "b", "password_hash": "x", "_version": 0}, existing)
        assert (result.name, result.password_hash, result._version) == ("b", "s3cret", 7)

    def test_deep_copy_mode_copies_carried(self):
        @dataclass
        class Cached:
            name: str = ""
            _seen: list[str] = field(default_factory=list)

        schema = build_schema(Cached)
        existing = Cached(_seen=["a"])
        result = merge(schema, {}, existing, copy_mode=CopyMode.DEEP)
        assert result._seen == ["a"]
        assert result._seen is not existing._seen

    def test_foreign_source_leaves_carried_zeroed(self):
        @dataclass
        class Credentials:
            name: str = ""
            password_hash: str = "other"
            _version: int = 3

        schema = build_schema(Account)
        result = merge(schema, {}, Credentials(name="c"))
        assert (result.name, result.password_hash, result._version) == ("c", "", 0)
