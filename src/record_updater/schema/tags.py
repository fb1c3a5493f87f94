"""Per-field annotations understood by the schema builder.

Two independent markers can be attached to a record attribute:

* an external-name override (``patch_name``), where ``None`` or the
  "use default" sentinel ``"-"`` means the folded attribute name is used;
* an exclusion marker (``patch_exclude``) that removes the attribute from
  the schema altogether.

Usage::

    @dataclass
    class Person:
        name: str = ""
        date_of_birth: str = patch_field(name="dob", default="")
        password_hash: str = patch_field(exclude=True, default="")

    class PersonModel(BaseModel):
        date_of_birth: str = Field("", json_schema_extra=patch_metadata(name="dob"))

    class PersonRow(Base):
        date_of_birth = Column(String, info=patch_metadata(name="dob"))
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any

from record_updater.core.config import (
    DEFAULT_EXCLUDE_KEY,
    DEFAULT_NAME_KEY,
    DEFAULT_NAME_SENTINEL,
    Settings,
)


def patch_metadata(name: str | None = None, *, exclude: bool = False) -> dict[str, Any]:
    """Build the metadata dict carrying the patch annotations."""
    metadata: dict[str, Any] = {}
    if name is not None:
        metadata[DEFAULT_NAME_KEY] = name
    if exclude:
        metadata[DEFAULT_EXCLUDE_KEY] = True
    return metadata


def patch_field(
    *,
    name: str | None = None,
    exclude: bool = False,
    metadata: Mapping[str, Any] | None = None,
    **field_kwargs: Any,
) -> Any:
    """``dataclasses.field`` with patch annotations merged into its metadata."""
    merged = dict(metadata or {})
    merged.update(patch_metadata(name, exclude=exclude))
    return dataclasses.field(metadata=merged, **field_kwargs)


def explicit_name(metadata: Mapping[str, Any], settings: Settings) -> str | None:
    """Return the external-name override, or None to use the folded name."""
    name = metadata.get(settings.name_key)
    if name is None or name == settings.default_name_sentinel:
        return None
    return str(name)


def is_excluded(metadata: Mapping[str, Any], settings: Settings) -> bool:
    return bool(metadata.get(settings.exclude_key, False))


__all__ = [
    "DEFAULT_EXCLUDE_KEY",
    "DEFAULT_NAME_KEY",
    "DEFAULT_NAME_SENTINEL",
    "explicit_name",
    "is_excluded",
    "patch_field",
    "patch_metadata",
]
