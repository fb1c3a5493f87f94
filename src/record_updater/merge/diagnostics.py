"""Opt-in merge diagnostics.

By default a merge silently falls back when an incoming value is missing,
null or of the wrong type.  Passing a ``MergeReport`` to the merger makes
those outcomes visible, e.g. to detect typos in payload keys::

    report = MergeReport()
    updated = updater(existing, {"nmae": "Bob"}, report=report)
    report.unknown_keys  # ["nmae"]
    report.outcome_of("name")  # FieldOutcome.KEPT_EXISTING
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from record_updater.core.enums import FallbackReason, FieldOutcome


class FieldReport(BaseModel):
    """What happened to one schema field during a merge."""

    external_name: str
    internal_name: str
    outcome: FieldOutcome
    reason: FallbackReason = FallbackReason.NONE


class MergeReport(BaseModel):
    """Per-field outcomes of a single merge call."""

    record_type: str = ""
    fields: list[FieldReport] = Field(default_factory=list)
    unknown_keys: list[str] = Field(default_factory=list)

    def record(
        self,
        external_name: str,
        internal_name: str,
        outcome: FieldOutcome,
        reason: FallbackReason = FallbackReason.NONE,
    ) -> None:
        self.fields.append(FieldReport(
            external_name=external_name,
            internal_name=internal_name,
            outcome=outcome,
            reason=reason,
        ))

    @property
    def applied(self) -> list[str]:
        """External names whose incoming value was applied."""
        return [f.external_name for f in self.fields if f.outcome == FieldOutcome.APPLIED]

    @property
    def fallbacks(self) -> list[FieldReport]:
        """Fields that fell back to the existing or zero value."""
        return [f for f in self.fields if f.outcome != FieldOutcome.APPLIED]

    @property
    def rejected(self) -> list[FieldReport]:
        """Fields whose incoming value could not be converted."""
        return [f for f in self.fields if f.reason == FallbackReason.UNCONVERTIBLE]

    @property
    def has_rejections(self) -> bool:
        """True if any supplied value was dropped or any key was unknown."""
        return bool(self.unknown_keys) or bool(self.rejected)

    def outcome_of(self, external_name: str) -> FieldOutcome | None:
        for f in self.fields:
            if f.external_name == external_name:
                return f.outcome
        return None
