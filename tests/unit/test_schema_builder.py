"""Test schema derivation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import pytest
from pydantic import BaseModel, Field

from record_updater import (
    EmptySchemaError,
    FieldDescriptor,
    InvalidInstanceError,
    SchemaCollisionError,
    Settings,
    build_schema,
    patch_field,
    patch_metadata,
)
from record_updater.core.enums import CollisionPolicy, RecordKind
from record_updater.merge.coercion import UNCONVERTIBLE
from record_updater.schema.builder import external_name_for
from record_updater.schema.introspect import RecordAttribute


@dataclass
class Person:
    Name: str = ""
    Age: int = 0
    Emails: list[str] = field(default_factory=list)
    DateOfBirth: str = patch_field(name="dob", default="")
    BFF: Optional[Person] = None
    Friends: list[Person] = field(default_factory=list)
    Extra: dict[str, str] = field(default_factory=dict)


@dataclass
class Member:
    display_name: str = ""
    password_hash: str = patch_field(exclude=True, default="")
    nickname: str = patch_field(name="-", default="")
    _secret: str = ""


@dataclass
class Collides:
    userName: str = ""
    user_name: str = ""


@dataclass
class LateCollision:
    userId: int = 0
    first: str = ""
    user_id: int = 0


@dataclass
class OnlyPrivate:
    _a: int = 0


@dataclass
class Empty:
    pass


class Customer(BaseModel):
    firstName: str = ""
    birth: str = Field("", alias="dob")
    email: str = Field("", alias="mail", json_schema_extra=patch_metadata(name="email_address"))
    internal: str = Field("", json_schema_extra=patch_metadata(exclude=True))


class TestBuildSchema:
    def test_folded_names_in_declaration_order(self):
        schema = build_schema(Person())
        assert schema.mapping() == {
            "name": "Name",
            "age": "Age",
            "emails": "Emails",
            "dob": "DateOfBirth",
            "bff": "BFF",
            "friends": "Friends",
            "extra": "Extra",
        }

    def test_accepts_record_type(self):
        assert build_schema(Person).mapping() == build_schema(Person()).mapping()

    def test_declared_types(self):
        schema = build_schema(Person)
        assert schema.get("age").declared_type is int
        assert schema.get("friends").declared_type == list[Person]
        assert schema.get("bff").declared_type == Optional[Person]

    def test_schema_is_deterministic(self):
        assert build_schema(Person) == build_schema(Person)

    def test_compiled_callables(self):
        age = build_schema(Person).get("age")
        assert age.convert(25) == 25
        assert age.convert("25") is UNCONVERTIBLE
        assert age.accepts(3)
        assert not age.accepts(None)
        assert age.zero() == 0

    def test_container_access(self):
        schema = build_schema(Person)
        assert len(schema) == 7
        assert "dob" in schema
        assert "DateOfBirth" not in schema
        assert schema.get("missing") is None
        assert [f.external_name for f in schema] == schema.external_names()

    def test_schema_is_frozen(self):
        schema = build_schema(Person)
        with pytest.raises(AttributeError):
            schema.fields = ()  # type: ignore[misc]


class TestEligibility:
    def test_exclusion_and_private_attributes(self):
        schema = build_schema(Member)
        assert schema.mapping() == {
            "display_name": "display_name",
            "nickname": "nickname",
        }

    def test_sentinel_means_default_name_not_exclusion(self):
        assert build_schema(Member).get("nickname").internal_name == "nickname"

    def test_custom_annotation_keys(self):
        @dataclass
        class Legacy:
            first: str = field(default="", metadata={"json": "given"})
            second: str = field(default="", metadata={"json": "~"})
            third: str = field(default="", metadata={"skip": True})

        settings = Settings(name_key="json", exclude_key="skip", default_name_sentinel="~")
        schema = build_schema(Legacy, settings=settings)
        assert schema.mapping() == {"given": "first", "second": "second"}

    def test_no_public_attributes(self):
        with pytest.raises(EmptySchemaError, match="OnlyPrivate"):
            build_schema(OnlyPrivate)

    def test_no_attributes(self):
        with pytest.raises(EmptySchemaError):
            build_schema(Empty())

    @pytest.mark.parametrize("sample", [None, 3, "Person", {"name": "x"}, [Person()]])
    def test_invalid_instance(self, sample):
        with pytest.raises(InvalidInstanceError):
            build_schema(sample)


class TestPydanticNames:
    def test_alias_and_patch_name(self):
        schema = build_schema(Customer)
        assert schema.mapping() == {
            "first_name": "firstName",
            "dob": "birth",
            "email_address": "email",
        }

    def test_alias_ignored_when_disabled(self):
        schema = build_schema(Customer, settings=Settings(honor_pydantic_alias=False))
        assert "birth" in schema
        assert "dob" not in schema


class TestCollisions:
    def test_collision_rejected_by_default(self):
        with pytest.raises(SchemaCollisionError) as exc_info:
            build_schema(Collides)
        err = exc_info.value
        assert err.external_name == "user_name"
        assert (err.first, err.second) == ("userName", "user_name")

    def test_last_wins(self, last_wins_settings):
        schema = build_schema(Collides, settings=last_wins_settings)
        assert schema.mapping() == {"user_name": "user_name"}

    def test_last_wins_keeps_declaration_order(self, last_wins_settings):
        schema = build_schema(LateCollision, settings=last_wins_settings)
        assert schema.external_names() == ["first", "user_id"]
        assert schema.get("user_id").internal_name == "user_id"

    def test_last_wins_logs_warning(self, caplog):
        settings = Settings(collision_policy=CollisionPolicy.LAST_WINS)
        with caplog.at_level("WARNING", logger="record_updater.schema.builder"):
            build_schema(Collides, settings=settings)
        assert "shadows 'userName'" in caplog.text


class TestExternalNameFor:
    def test_legacy_whitespace_setting_reaches_folder(self):
        attr = RecordAttribute(name="really MustPass", declared_type=str)
        fixed = external_name_for(attr, RecordKind.DATACLASS, Settings())
        legacy = external_name_for(
            attr, RecordKind.DATACLASS, Settings(legacy_whitespace_folding=True),
        )
        assert fixed == "really_must_pass"
        assert legacy == "really _must_pass"

    def test_alias_only_for_pydantic(self):
        attr = RecordAttribute(name="birth", declared_type=str, alias="dob")
        assert external_name_for(attr, RecordKind.PYDANTIC, Settings()) == "dob"
        assert external_name_for(attr, RecordKind.DATACLASS, Settings()) == "birth"

    def test_sentinel_alias_uses_folded_name(self):
        attr = RecordAttribute(name="birthDate", declared_type=str, alias="-")
        assert external_name_for(attr, RecordKind.PYDANTIC, Settings()) == "birth_date"


class TestFieldDescriptorDefaults:
    @pytest.mark.parametrize("value", [0, "", [], None, False])
    def test_hand_built_descriptor_accepts_falsy_values(self, value):
        descriptor = FieldDescriptor(external_name="a", internal_name="a", declared_type=int)
        assert descriptor.accepts(value) is True
